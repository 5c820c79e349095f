from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from taskflow.schemas.task import Task as TaskSchema
from taskflow.utils.sanitization import sanitize_string


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)

    @field_validator("name", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(ProjectBase):
    pass


class OwnershipTransfer(BaseModel):
    new_owner_id: int


class ProjectResponse(ProjectBase):
    id: int
    owner_id: int
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ProjectStats(BaseModel):
    project: ProjectResponse
    total_tasks: int
    tasks_by_status: dict[str, int]
    overdue_tasks: int


class ProjectWithTasks(BaseModel):
    project: ProjectResponse
    tasks: list[TaskSchema]
