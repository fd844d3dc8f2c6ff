"""
user_settings.py — ORM Model for per-user preference bags.
"""

from sqlalchemy import JSON, Column, DateTime, String

from taskflow.models.base import Base


class UserSettings(Base):
    __tablename__ = "tf_settings"

    user_id = Column(String(36), primary_key=True)
    settings = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), nullable=True)
