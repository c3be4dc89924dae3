from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from taskai.database import get_db
from taskai.filters import filter_tasks, sort_tasks
from taskai.repository import TaskRepository
from taskai.routers.auth import get_current_user
from taskai.schemas.task import Suggestion, SuggestionRequest, TaskDraft, TaskOut, TaskStatusUpdate
from taskai.schemas.user import Identity

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _split_ids(ids: str) -> List[str]:
    return [i.strip() for i in ids.split(",") if i.strip()]


@router.get("", response_model=List[TaskOut])
def list_tasks(
    ids: Optional[str] = Query(None, description="Comma separated task ids"),
    priority: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = Query(None, description="Search by name or description"),
    sort: Optional[str] = None,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """With ``ids`` return only those of the caller's tasks; otherwise the
    caller's full list, newest first, narrowed by the optional filters.
    """
    repo = TaskRepository(db)
    if ids is not None:
        return repo.list_tasks_by_ids(identity.id, _split_ids(ids))
    tasks = filter_tasks(
        repo.list_tasks(identity.id),
        priority=priority,
        status=status,
        category=category,
        tag=tag,
        search=search,
    )
    return sort_tasks(tasks, sort)


@router.post("", response_model=TaskOut, status_code=201)
def create_task(draft: TaskDraft, identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return TaskRepository(db).create_task(identity.id, draft)


@router.get("/categories", response_model=List[str])
def list_categories(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return TaskRepository(db).list_distinct_categories(identity.id)


@router.get("/tags", response_model=List[str])
def list_tags(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return TaskRepository(db).list_distinct_tags(identity.id)


@router.post("/suggestions", response_model=Suggestion)
def suggest(
    body: SuggestionRequest,
    request: Request,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    existing = TaskRepository(db).list_tasks(identity.id)
    return request.app.state.suggester.suggest(body, existing)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: str, identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return TaskRepository(db).get_task(identity.id, task_id)


@router.get("/{task_id}/dependencies", response_model=List[TaskOut])
def list_dependencies(task_id: str, identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    """Dependencies the caller owns; dangling or foreign ids are left out."""
    repo = TaskRepository(db)
    task = repo.get_task(identity.id, task_id)
    return repo.list_tasks_by_ids(identity.id, task.dependencies or [])


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    draft: TaskDraft,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TaskRepository(db).update_task(identity.id, task_id, draft)


@router.patch("/{task_id}/status", response_model=TaskOut)
def set_task_status(
    task_id: str,
    body: TaskStatusUpdate,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TaskRepository(db).set_task_status(identity.id, task_id, body.completed)


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: str, identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    TaskRepository(db).delete_task(identity.id, task_id)
    return Response(status_code=204)
