"""
history.py — History Log Handler

Append-only audit log of task mutations, scoped to the caller.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from taskflow.core.errors import ValidationFailed, describe_validation_error
from taskflow.core.logging import get_logger
from taskflow.services.db_client import TaskFlowDB
from taskflow.utils.timestamps import now_iso

logger = get_logger(__name__)

VALID_ACTIONS = ("create", "edit_text", "move_list", "complete", "delete")
MAX_ID_LENGTH = 64
RECENT_LIMIT = 200


class HistoryEntryIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    task_id: str
    action: str
    before: Any = None
    after: Any = None
    ts: Optional[str] = None

    @field_validator("id", "task_id", mode="before")
    @classmethod
    def truncate_ids(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)[:MAX_ID_LENGTH]

    @field_validator("task_id")
    @classmethod
    def require_task_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("task_id required")
        return v

    @field_validator("action")
    @classmethod
    def check_action(cls, v: str) -> str:
        if v not in VALID_ACTIONS:
            raise ValueError("Invalid action type")
        return v


def parse_entry(body: Any) -> HistoryEntryIn:
    """Accepts `{"entry": {...}}` or the entry object itself."""
    if isinstance(body, dict) and isinstance(body.get("entry"), dict):
        body = body["entry"]
    if not isinstance(body, dict):
        raise ValidationFailed("Invalid history entry")
    try:
        return HistoryEntryIn.model_validate(body)
    except ValidationError as e:
        raise ValidationFailed(describe_validation_error(e)) from e


def append_entry(db: TaskFlowDB, user_id: str, entry: HistoryEntryIn) -> Dict[str, Any]:
    row = {
        "id": entry.id or str(uuid.uuid4()),
        "user_id": user_id,
        "task_id": entry.task_id,
        "action": entry.action,
        "before": entry.before,
        "after": entry.after,
        "ts": entry.ts or now_iso(),
    }
    db.insert_history(row)
    return row


def list_recent(db: TaskFlowDB, user_id: str, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
    return db.list_history(user_id, min(limit, RECENT_LIMIT))


def clear(db: TaskFlowDB, user_id: str) -> int:
    removed = db.clear_history(user_id)
    logger.info("Cleared %d history entries for user %s", removed, user_id)
    return removed
