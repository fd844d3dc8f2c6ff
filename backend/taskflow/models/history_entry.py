"""
history_entry.py — ORM Model for the append-only task history log.
"""

from sqlalchemy import JSON, Column, DateTime, String, func

from taskflow.models.base import Base


class HistoryEntry(Base):
    __tablename__ = "tf_task_history"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(36), index=True, nullable=False)
    task_id = Column(String(64), nullable=False)
    action = Column(String(16), nullable=False)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    ts = Column(DateTime(timezone=True), index=True, server_default=func.now())

    def __repr__(self):
        return f"<HistoryEntry {self.action} task={self.task_id}>"
