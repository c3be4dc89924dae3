import uuid
from datetime import datetime, UTC

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, String, Text
from taskai.database import Base


def _new_id():
    return uuid.uuid4().hex


def utcnow():
    """Naive UTC timestamp; all stored date-times share this convention."""
    return datetime.now(UTC).replace(tzinfo=None)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=_new_id)
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(10), nullable=False, default="medium")
    deadline = Column(DateTime, nullable=False)
    duration = Column(Float, nullable=False)
    category = Column(String, nullable=True)
    # Ids of other tasks; neither existence nor ownership is enforced
    dependencies = Column(JSON, nullable=False, default=list)
    completed = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    reminder_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
