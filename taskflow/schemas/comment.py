from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from taskflow.utils.sanitization import sanitize_string


class CommentBase(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class CommentCreate(CommentBase):
    pass


class CommentUpdate(CommentBase):
    pass


class CommentResponse(CommentBase):
    id: int
    task_id: int
    author_id: int
    is_edited: bool
    is_recent: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
