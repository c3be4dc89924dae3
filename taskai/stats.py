"""Dashboard and analytics aggregates over a snapshot of a user's tasks.

Everything here is a pure function: given the same tasks and the same
``now`` the result is the same, nothing is written back to the tasks and no
I/O happens. Tasks may be ORM rows or ``TaskOut`` models; only attribute
access is used.
"""
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from taskai import errors
from taskai.schemas.task import ChartSlice, DayBucket, Summary, to_naive_utc

UNCATEGORIZED = "Uncategorized"

TIME_RANGES = {
    "7days": timedelta(days=7),
    "30days": timedelta(days=30),
    "all": None,
}


def start_of_day(moment: datetime) -> datetime:
    return to_naive_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def compute_summary(tasks: Iterable, now: datetime) -> Summary:
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)

    total = completed = due_today = overdue = 0
    by_priority = Counter()
    for task in tasks:
        total += 1
        if task.completed:
            completed += 1
            continue
        deadline = to_naive_utc(task.deadline)
        if today <= deadline < tomorrow:
            due_today += 1
        elif deadline < today:
            overdue += 1
        by_priority[task.priority] += 1

    return Summary(
        total_tasks=total,
        completed_tasks=completed,
        pending_tasks=total - completed,
        due_today_tasks=due_today,
        overdue_tasks=overdue,
        high_priority_tasks=by_priority["high"],
        medium_priority_tasks=by_priority["medium"],
        low_priority_tasks=by_priority["low"],
        completion_rate=_round_half_up(100 * completed / total) if total else 0,
    )


def group_by_category(tasks: Iterable) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for task in tasks:
        category = task.category or UNCATEGORIZED
        counts[category] = counts.get(category, 0) + 1
    return counts


def bucket_by_creation_date(tasks: Iterable) -> List[DayBucket]:
    """One bucket per distinct creation day, oldest day first."""
    buckets: Dict[date, DayBucket] = {}
    for task in tasks:
        day = to_naive_utc(task.created_at).date()
        bucket = buckets.setdefault(day, DayBucket(date=day))
        bucket.created += 1
        if task.completed:
            bucket.completed += 1
    return [buckets[day] for day in sorted(buckets)]


def filter_by_window(tasks: Iterable, window_start: Optional[datetime], window_end: Optional[datetime]) -> list:
    """Keep tasks with ``window_start <= created_at < window_end``; None is unbounded."""
    start = to_naive_utc(window_start)
    end = to_naive_utc(window_end)
    selected = []
    for task in tasks:
        created = to_naive_utc(task.created_at)
        if start is not None and created < start:
            continue
        if end is not None and created >= end:
            continue
        selected.append(task)
    return selected


def window_bounds(time_range: str, now: datetime) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Creation-date window for a named range; "all" is unbounded on both ends."""
    if time_range not in TIME_RANGES:
        raise errors.ValidationError(
            f"Invalid range {time_range!r}; expected one of {', '.join(TIME_RANGES)}"
        )
    span = TIME_RANGES[time_range]
    if span is None:
        return None, None
    now = to_naive_utc(now)
    return now - span, now


def status_breakdown(summary: Summary) -> List[ChartSlice]:
    return [
        ChartSlice(name="Completed", value=summary.completed_tasks),
        ChartSlice(name="Pending", value=summary.pending_tasks),
        ChartSlice(name="Overdue", value=summary.overdue_tasks),
    ]


def priority_breakdown(summary: Summary) -> List[ChartSlice]:
    return [
        ChartSlice(name="High", value=summary.high_priority_tasks),
        ChartSlice(name="Medium", value=summary.medium_priority_tasks),
        ChartSlice(name="Low", value=summary.low_priority_tasks),
    ]
