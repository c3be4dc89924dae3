from datetime import date, datetime, UTC
from typing import Any, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from taskai import errors

Priority = Literal["high", "medium", "low"]

MIN_DURATION = 0.5
MAX_DURATION = 24


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def _unique(values: List[str]) -> List[str]:
    # Drop blanks and repeats but keep the order the user entered them in
    cleaned = (v.strip() for v in values)
    return list(dict.fromkeys(v for v in cleaned if v))


class TaskDraft(BaseModel):
    name: str
    description: Optional[str] = None
    priority: Priority = "medium"
    deadline: datetime
    duration: float = Field(ge=MIN_DURATION, le=MAX_DURATION)
    category: Optional[str] = None
    dependencies: List[str] = []
    tags: List[str] = []
    reminder_date: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("description", "category")
    @classmethod
    def blank_to_none(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("priority", mode="before")
    @classmethod
    def priority_default(cls, v):
        return v or "medium"

    @field_validator("deadline", "reminder_date")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v)

    @field_validator("dependencies", "tags", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("dependencies", "tags")
    @classmethod
    def dedupe(cls, v):
        return _unique(v)


def validate_draft(data: Any) -> TaskDraft:
    """Turn client input into a TaskDraft or raise errors.ValidationError."""
    if isinstance(data, TaskDraft):
        return data
    if not isinstance(data, Mapping):
        raise errors.ValidationError("task draft must be an object")
    try:
        return TaskDraft.model_validate(dict(data))
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'draft'}: {err['msg']}" for err in e.errors()
        )
        raise errors.ValidationError(problems) from e


class TaskStatusUpdate(BaseModel):
    completed: bool


class TaskOut(BaseModel):
    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    priority: str
    deadline: datetime
    duration: float
    category: Optional[str] = None
    dependencies: List[str] = []
    completed: bool
    tags: List[str] = []
    reminder_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SuggestionRequest(BaseModel):
    name: str
    description: str = ""
    deadline: Optional[str] = None


class Suggestion(BaseModel):
    priority: Priority = "medium"
    duration: float = 1
    dependencies: List[str] = []
    tags: List[str] = []


class Summary(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    due_today_tasks: int = 0
    overdue_tasks: int = 0
    high_priority_tasks: int = 0
    medium_priority_tasks: int = 0
    low_priority_tasks: int = 0
    completion_rate: int = 0


class DayBucket(BaseModel):
    date: date
    created: int = 0
    completed: int = 0


class ChartSlice(BaseModel):
    name: str
    value: int


class Overview(BaseModel):
    summary: Summary
    upcoming: List[TaskOut]
    recently_completed: List[TaskOut]


class Analytics(BaseModel):
    range: str
    summary: Summary
    status: List[ChartSlice]
    priority: List[ChartSlice]
    categories: List[ChartSlice]
    timeline: List[DayBucket]


class CalendarDay(BaseModel):
    date: date
    tasks: List[TaskOut]
