"""Persistence access for tasks and users.

Every task operation takes the caller's ``owner_id`` and filters on it
together with the task id, so one user can never read or change another
user's records. A task that exists but belongs to someone else is reported
exactly like a task that does not exist.
"""
import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskai import errors
from taskai.database import STORE_UNAVAILABLE_ERRORS
from taskai.models.task import Task, utcnow
from taskai.models.user import User
from taskai.schemas.task import validate_draft
from taskai.utils.auth import hash_password, verify_password

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


@contextmanager
def store_errors(db: Session):
    """Translate connectivity failures into UpstreamUnavailableError."""
    try:
        yield
    except STORE_UNAVAILABLE_ERRORS as exc:
        db.rollback()
        raise errors.UpstreamUnavailableError("Task store unavailable") from exc


class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def _owned(self, owner_id: str):
        return self.db.query(Task).filter(Task.owner_id == owner_id)

    def _get_owned(self, owner_id: str, task_id: str) -> Task:
        task = self._owned(owner_id).filter(Task.id == task_id).first()
        if task is None:
            raise errors.NotFoundError(TASK_NOT_FOUND)
        return task

    def list_tasks(self, owner_id: str) -> List[Task]:
        try:
            with store_errors(self.db):
                return self._owned(owner_id).order_by(Task.created_at.desc()).all()
        except errors.UpstreamUnavailableError:
            logger.exception("Failed to fetch tasks for %s", owner_id)
            return []

    def list_tasks_by_ids(self, owner_id: str, ids: Iterable[str]) -> List[Task]:
        ids = set(ids)
        if not ids:
            return []
        with store_errors(self.db):
            return (
                self._owned(owner_id)
                .filter(Task.id.in_(list(ids)))
                .order_by(Task.created_at.desc())
                .all()
            )

    def get_task(self, owner_id: str, task_id: str) -> Task:
        with store_errors(self.db):
            return self._get_owned(owner_id, task_id)

    def create_task(self, owner_id: str, draft) -> Task:
        draft = validate_draft(draft)
        now = utcnow()
        task = Task(
            owner_id=owner_id,
            completed=False,
            created_at=now,
            updated_at=now,
            **draft.model_dump(),
        )
        with store_errors(self.db):
            self.db.add(task)
            self.db.commit()
            self.db.refresh(task)
        logger.info("Created task %s for %s", task.id, owner_id)
        return task

    def update_task(self, owner_id: str, task_id: str, draft) -> Task:
        draft = validate_draft(draft)
        with store_errors(self.db):
            task = self._get_owned(owner_id, task_id)
            # Full replace: fields missing from the draft are cleared
            for field, value in draft.model_dump().items():
                setattr(task, field, value)
            task.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(task)
        logger.info("Updated task %s for %s", task_id, owner_id)
        return task

    def set_task_status(self, owner_id: str, task_id: str, completed: bool) -> Task:
        with store_errors(self.db):
            task = self._get_owned(owner_id, task_id)
            task.completed = completed
            task.updated_at = utcnow()
            self.db.commit()
            self.db.refresh(task)
        return task

    def delete_task(self, owner_id: str, task_id: str) -> None:
        with store_errors(self.db):
            task = self._get_owned(owner_id, task_id)
            self.db.delete(task)
            self.db.commit()
        logger.info("Deleted task %s for %s", task_id, owner_id)

    def list_distinct_categories(self, owner_id: str) -> List[str]:
        try:
            with store_errors(self.db):
                rows = (
                    self.db.query(Task.category)
                    .filter(Task.owner_id == owner_id, Task.category.isnot(None))
                    .distinct()
                    .all()
                )
        except errors.UpstreamUnavailableError:
            logger.exception("Failed to fetch categories for %s", owner_id)
            return []
        return [category for (category,) in rows if category]

    def list_distinct_tags(self, owner_id: str) -> List[str]:
        try:
            with store_errors(self.db):
                rows = self.db.query(Task.tags).filter(Task.owner_id == owner_id).all()
        except errors.UpstreamUnavailableError:
            logger.exception("Failed to fetch tags for %s", owner_id)
            return []
        tags = {}
        for (task_tags,) in rows:
            for tag in task_tags or []:
                tags.setdefault(tag, None)
        return list(tags)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Optional[User]:
        with store_errors(self.db):
            return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user(self, user_id: str) -> Optional[User]:
        with store_errors(self.db):
            return self.db.query(User).filter(User.id == user_id).first()

    def create_user(self, name: str, email: str, password: str, image: Optional[str] = None) -> User:
        email = email.strip().lower()
        if self.get_by_email(email):
            raise errors.EmailAlreadyRegisteredError("Email already exists")

        user = User(name=name, email=email, password=hash_password(password), image=image)
        with store_errors(self.db):
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent registration won the unique email index
                self.db.rollback()
                raise errors.EmailAlreadyRegisteredError("Email already exists")
            self.db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(email)
        if not user or not verify_password(password, user.password):
            return None
        return user
