from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from taskflow.database import Base
from taskflow.models.enums import TaskStatus, Priority, IN_PROGRESS_STATUSES
from taskflow.utils.clock import utcnow, as_utc


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    status = Column(Enum(TaskStatus), nullable=False, default=TaskStatus.TODO, index=True)
    priority = Column(Enum(Priority), nullable=False, default=Priority.MEDIUM)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    estimated_hours = Column(Integer, nullable=True)
    actual_hours = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_overdue(self) -> bool:
        # CANCELLED tasks past their due date still count as overdue.
        due = as_utc(self.due_date)
        return due is not None and utcnow() > due and self.status != TaskStatus.DONE

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.DONE

    @property
    def is_in_progress(self) -> bool:
        return self.status in IN_PROGRESS_STATUSES

    def __repr__(self):
        return f"<Task id={self.id} title={self.title!r} status={self.status}>"
