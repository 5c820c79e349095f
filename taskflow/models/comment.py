from datetime import timedelta

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from taskflow.database import Base
from taskflow.utils.clock import utcnow, as_utc

RECENT_WINDOW = timedelta(days=1)

class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(String(1000), nullable=False)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_edited = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def mark_as_edited(self):
        self.is_edited = True

    @property
    def is_recent(self) -> bool:
        created = as_utc(self.created_at)
        return created is not None and created > utcnow() - RECENT_WINDOW

    def __repr__(self):
        return f"<Comment id={self.id} task_id={self.task_id} author_id={self.author_id}>"
