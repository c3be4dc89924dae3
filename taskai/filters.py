"""List filtering, sorting and calendar grouping for task views."""
import calendar
from datetime import date
from typing import Dict, Iterable, List, Optional

from taskai import errors
from taskai.schemas.task import to_naive_utc

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

SORT_KEYS = {
    "deadline-asc": (lambda t: to_naive_utc(t.deadline), False),
    "deadline-desc": (lambda t: to_naive_utc(t.deadline), True),
    "priority": (lambda t: PRIORITY_ORDER.get(t.priority, len(PRIORITY_ORDER)), False),
    "created-desc": (lambda t: to_naive_utc(t.created_at), True),
    "created-asc": (lambda t: to_naive_utc(t.created_at), False),
}

STATUSES = ("pending", "completed")


def _active(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


def filter_tasks(
    tasks: Iterable,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
) -> list:
    """Apply the task-list filters; ``None``, ``""`` and ``"all"`` disable a filter."""
    selected = list(tasks)
    if _active(priority):
        selected = [t for t in selected if t.priority == priority]
    if _active(status):
        if status not in STATUSES:
            raise errors.ValidationError("Invalid status filter")
        is_completed = status == "completed"
        selected = [t for t in selected if t.completed == is_completed]
    if _active(category):
        selected = [t for t in selected if t.category == category]
    if _active(tag):
        selected = [t for t in selected if tag in (t.tags or [])]
    if search:
        needle = search.lower()
        selected = [
            t for t in selected
            if needle in t.name.lower() or (t.description and needle in t.description.lower())
        ]
    return selected


def sort_tasks(tasks: Iterable, sort: Optional[str] = None) -> list:
    if not sort or sort == "default":
        return list(tasks)
    if sort not in SORT_KEYS:
        raise errors.ValidationError("Invalid sort field")
    key, reverse = SORT_KEYS[sort]
    return sorted(tasks, key=key, reverse=reverse)


def upcoming_tasks(tasks: Iterable, limit: int = 5) -> list:
    pending = [t for t in tasks if not t.completed]
    return sorted(pending, key=lambda t: to_naive_utc(t.deadline))[:limit]


def recently_completed(tasks: Iterable, limit: int = 5) -> list:
    done = [t for t in tasks if t.completed]
    return sorted(done, key=lambda t: to_naive_utc(t.updated_at), reverse=True)[:limit]


def tasks_by_deadline_day(tasks: Iterable, year: int, month: int) -> Dict[date, List]:
    """Every day of the month mapped to the tasks due that day."""
    if not 1 <= month <= 12:
        raise errors.ValidationError("month must be between 1 and 12")
    if not 1 <= year <= 9999:
        raise errors.ValidationError("year must be between 1 and 9999")
    _, days_in_month = calendar.monthrange(year, month)
    days = {date(year, month, d): [] for d in range(1, days_in_month + 1)}
    for task in tasks:
        due = to_naive_utc(task.deadline).date()
        if due in days:
            days[due].append(task)
    return days
