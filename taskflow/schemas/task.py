from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from taskflow.models.enums import TaskStatus, Priority
from taskflow.utils.sanitization import sanitize_string


# ── Common base for readable/writeable fields ──
class TaskBase(BaseModel):
    title: str = Field(..., min_length=2, max_length=200)
    description: str | None = Field(None, max_length=1000)
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    estimated_hours: int | None = Field(None, ge=0)
    actual_hours: int | None = Field(None, ge=0)

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class TaskCreate(TaskBase):
    assignee_id: int | None = None


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = Field(None, max_length=1000)
    priority: Priority | None = None
    due_date: datetime | None = None
    estimated_hours: int | None = Field(None, ge=0)
    actual_hours: int | None = Field(None, ge=0)

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskAssign(BaseModel):
    assignee_id: int


class Task(TaskBase):
    id: int
    project_id: int
    status: TaskStatus
    assignee_id: int | None = None
    is_overdue: bool
    is_in_progress: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
