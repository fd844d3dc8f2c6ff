"""
Table definitions for the five TaskFlow tables.

The API never goes through the ORM (all reads and writes use the Supabase
query builder); these classes exist so the schema can be created from code.
"""

from taskflow.models.base import Base
from taskflow.models.history_entry import HistoryEntry
from taskflow.models.session import AuthSession
from taskflow.models.task import Task
from taskflow.models.user import User
from taskflow.models.user_settings import UserSettings

__all__ = ["AuthSession", "Base", "HistoryEntry", "Task", "User", "UserSettings"]
