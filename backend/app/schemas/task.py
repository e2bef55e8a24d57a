from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

TaskStatus = Literal["Assigned", "In Progress", "Completed", "On Hold"]
TaskPriority = Literal["Low", "Medium", "High", "Critical"]
TaskRelation = Literal["assigned", "created", "all"]


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return None
    return v.strip() or None


class TaskCreate(BaseModel):
    title: str = Field(..., max_length=255)
    assigned_to: UUID
    due_date: date
    priority: TaskPriority = "Medium"
    description: str | None = None
    remarks: str | None = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Task title is required")
        return v.strip()

    @field_validator("description", "remarks")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class TaskStatusUpdate(BaseModel):
    status: TaskStatus
    remarks: str | None = None

    @field_validator("remarks")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class TaskFilters(BaseModel):
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: UUID | None = None
    due_from: date | None = None
    due_to: date | None = None
    search: str | None = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    remarks: str | None = None
    assigned_by: UUID
    assigned_to: UUID
    assigned_by_name: str | None = None
    assigned_to_name: str | None = None
    due_date: date
    priority: TaskPriority
    status: TaskStatus
    last_activity: datetime | None = None


class CalendarDay(BaseModel):
    task_date: date
    total: int
    completed: int
    overdue_open: int


class UserTaskStats(BaseModel):
    user_id: UUID
    name: str
    total_tasks: int
    pending_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    completion_rate: int


class TaskOverview(BaseModel):
    total_users: int
    completed_tasks: int
    in_progress_tasks: int
    users: list[UserTaskStats]
