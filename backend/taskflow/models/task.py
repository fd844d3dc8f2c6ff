"""
task.py — ORM Model for Tasks

Task ids are scoped per user: the primary key is (user_id, id), and every
read and write filters on both.
"""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, String, Text, func

from taskflow.models.base import Base


class Task(Base):
    __tablename__ = "tf_tasks"

    user_id = Column(String(36), primary_key=True)
    id = Column(String(64), primary_key=True)

    text = Column(Text, nullable=False)
    category = Column(String(32), nullable=False, default="actions")
    list_name = Column(String(100), nullable=False, default="Personal Actions")
    tags = Column(JSON, nullable=False, default=list)
    due_date = Column(Date, nullable=True)
    priority = Column(String(16), nullable=False, default="none")
    notes = Column(Text, nullable=False, default="")

    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_modified = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Task {self.id} ({self.category}/{self.list_name})>"
