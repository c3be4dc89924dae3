from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskai import stats
from taskai.database import get_db
from taskai.filters import recently_completed, tasks_by_deadline_day, upcoming_tasks
from taskai.models.task import utcnow
from taskai.repository import TaskRepository
from taskai.routers.auth import get_current_user
from taskai.schemas.task import Analytics, CalendarDay, ChartSlice, Overview, Summary, TaskOut
from taskai.schemas.user import Identity

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _out(tasks):
    return [TaskOut.model_validate(t) for t in tasks]


@router.get("/summary", response_model=Summary)
def summary(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    tasks = TaskRepository(db).list_tasks(identity.id)
    return stats.compute_summary(tasks, utcnow())


@router.get("/overview", response_model=Overview)
def overview(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    tasks = TaskRepository(db).list_tasks(identity.id)
    return Overview(
        summary=stats.compute_summary(tasks, utcnow()),
        upcoming=_out(upcoming_tasks(tasks)),
        recently_completed=_out(recently_completed(tasks)),
    )


@router.get("/analytics", response_model=Analytics)
def analytics(
    time_range: str = Query("7days", alias="range"),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Status and priority series cover every task; the category and
    timeline series only cover tasks created inside the selected range.
    """
    now = utcnow()
    window_start, window_end = stats.window_bounds(time_range, now)
    tasks = TaskRepository(db).list_tasks(identity.id)
    summary = stats.compute_summary(tasks, now)
    in_window = stats.filter_by_window(tasks, window_start, window_end)
    return Analytics(
        range=time_range,
        summary=summary,
        status=stats.status_breakdown(summary),
        priority=stats.priority_breakdown(summary),
        categories=[
            ChartSlice(name=name, value=count)
            for name, count in stats.group_by_category(in_window).items()
        ],
        timeline=stats.bucket_by_creation_date(in_window),
    )


@router.get("/calendar", response_model=List[CalendarDay])
def calendar_view(
    year: Optional[int] = None,
    month: Optional[int] = None,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    today = utcnow()
    days = tasks_by_deadline_day(
        TaskRepository(db).list_tasks(identity.id),
        year if year is not None else today.year,
        month if month is not None else today.month,
    )
    return [CalendarDay(date=day, tasks=_out(tasks)) for day, tasks in days.items()]
