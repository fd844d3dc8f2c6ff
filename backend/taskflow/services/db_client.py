"""
Supabase database client helpers for the TaskFlow handlers.

Every helper that reads or writes user-owned rows takes the owning user_id
and puts it in the same query as the id filter, so authorization and the
mutation happen in one statement.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from taskflow.core.errors import Conflict, UpstreamError
from taskflow.core.logging import get_logger


logger = get_logger(__name__)

USERS_TABLE = "tf_auth"
SESSIONS_TABLE = "tf_sessions"
TASKS_TABLE = "tf_tasks"
HISTORY_TABLE = "tf_task_history"
SETTINGS_TABLE = "tf_settings"

PUBLIC_USER_COLUMNS = "user_id, username, display_name, is_admin, is_active, created_at"

_UNIQUE_VIOLATION = "23505"


class WriteResult(str, Enum):
    """Outcome of a scoped single-row write."""
    UPDATED = "updated"
    NO_MATCHING_ROW = "no_matching_row"


def _write_result(rows: Optional[List[Dict[str, Any]]]) -> WriteResult:
    return WriteResult.UPDATED if rows else WriteResult.NO_MATCHING_ROW


class TaskFlowDB:
    """
    Thin wrapper providing typed helpers around the five TaskFlow tables.
    """

    def __init__(self, client: Client):
        self._client = client

    def _execute(self, query, action: str, conflict: Optional[Conflict] = None) -> List[Dict[str, Any]]:
        try:
            response = query.execute()
        except APIError as e:
            if conflict is not None and getattr(e, "code", None) == _UNIQUE_VIOLATION:
                raise conflict from e
            message = getattr(e, "message", None) or str(e)
            logger.error("Database error during %s: %s", action, message)
            raise UpstreamError(message) from e
        return response.data or []

    # ------------------------------------------------------------------ #
    # Users / credentials
    def has_users(self) -> bool:
        rows = self._execute(
            self._client.table(USERS_TABLE).select("user_id").limit(1),
            "has_users",
        )
        return bool(rows)

    def list_users(self) -> List[Dict[str, Any]]:
        return self._execute(
            self._client.table(USERS_TABLE)
            .select(PUBLIC_USER_COLUMNS)
            .order("created_at", desc=False),
            "list_users",
        )

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(
            self._client.table(USERS_TABLE)
            .select("*")
            .eq("username", username)
            .limit(1),
            "get_user_by_username",
        )
        return rows[0] if rows else None

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(
            self._client.table(USERS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .limit(1),
            "get_user_by_id",
        )
        return rows[0] if rows else None

    def first_users(self, limit: int) -> List[Dict[str, Any]]:
        return self._execute(
            self._client.table(USERS_TABLE)
            .select("*")
            .order("created_at", desc=False)
            .limit(limit),
            "first_users",
        )

    def insert_user(self, payload: Dict[str, Any], conflict: Conflict) -> Dict[str, Any]:
        rows = self._execute(
            self._client.table(USERS_TABLE).insert(payload),
            "insert_user",
            conflict=conflict,
        )
        return rows[0] if rows else payload

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> WriteResult:
        rows = self._execute(
            self._client.table(USERS_TABLE).update(updates).eq("user_id", user_id),
            "update_user",
        )
        return _write_result(rows)

    # ------------------------------------------------------------------ #
    # Sessions
    def get_session(self, token: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(
            self._client.table(SESSIONS_TABLE)
            .select("token, user_id, expires_at")
            .eq("token", token)
            .limit(1),
            "get_session",
        )
        return rows[0] if rows else None

    def insert_session(self, token: str, user_id: str, expires_at: str, created_at: str) -> None:
        self._execute(
            self._client.table(SESSIONS_TABLE).insert({
                "token": token,
                "user_id": user_id,
                "expires_at": expires_at,
                "created_at": created_at,
            }),
            "insert_session",
        )

    def delete_expired_sessions(self, now_iso: str) -> int:
        rows = self._execute(
            self._client.table(SESSIONS_TABLE).delete().lt("expires_at", now_iso),
            "delete_expired_sessions",
        )
        return len(rows)

    def delete_sessions_for_user(self, user_id: str) -> int:
        rows = self._execute(
            self._client.table(SESSIONS_TABLE).delete().eq("user_id", user_id),
            "delete_sessions_for_user",
        )
        return len(rows)

    # ------------------------------------------------------------------ #
    # Tasks
    def list_tasks(self, user_id: str) -> List[Dict[str, Any]]:
        return self._execute(
            self._client.table(TASKS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=False),
            "list_tasks",
        )

    def list_open_tasks(self, user_id: str) -> List[Dict[str, Any]]:
        return self._execute(
            self._client.table(TASKS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("completed", False)
            .eq("is_archived", False)
            .order("created_at", desc=False),
            "list_open_tasks",
        )

    def insert_task(self, row: Dict[str, Any], conflict: Conflict) -> None:
        self._execute(
            self._client.table(TASKS_TABLE).insert(row),
            "insert_task",
            conflict=conflict,
        )

    def update_task(self, user_id: str, task_id: str, updates: Dict[str, Any]) -> WriteResult:
        rows = self._execute(
            self._client.table(TASKS_TABLE)
            .update(updates)
            .eq("id", task_id)
            .eq("user_id", user_id),
            "update_task",
        )
        return _write_result(rows)

    def delete_task(self, user_id: str, task_id: str) -> WriteResult:
        rows = self._execute(
            self._client.table(TASKS_TABLE)
            .delete()
            .eq("id", task_id)
            .eq("user_id", user_id),
            "delete_task",
        )
        return _write_result(rows)

    # ------------------------------------------------------------------ #
    # History
    def list_history(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        return self._execute(
            self._client.table(HISTORY_TABLE)
            .select("id, task_id, action, before, after, ts")
            .eq("user_id", user_id)
            .order("ts", desc=True)
            .limit(limit),
            "list_history",
        )

    def insert_history(self, row: Dict[str, Any]) -> None:
        self._execute(
            self._client.table(HISTORY_TABLE).insert(row),
            "insert_history",
        )

    def clear_history(self, user_id: str) -> int:
        rows = self._execute(
            self._client.table(HISTORY_TABLE).delete().eq("user_id", user_id),
            "clear_history",
        )
        return len(rows)

    # ------------------------------------------------------------------ #
    # Settings
    def get_settings_bag(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(
            self._client.table(SETTINGS_TABLE)
            .select("settings")
            .eq("user_id", user_id)
            .limit(1),
            "get_settings_bag",
        )
        if not rows:
            return None
        return rows[0].get("settings") or {}

    def upsert_settings_bag(self, user_id: str, bag: Dict[str, Any], updated_at: str) -> None:
        self._execute(
            self._client.table(SETTINGS_TABLE).upsert(
                {"user_id": user_id, "settings": bag, "updated_at": updated_at},
                on_conflict="user_id",
            ),
            "upsert_settings_bag",
        )
