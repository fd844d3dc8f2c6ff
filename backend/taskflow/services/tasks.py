"""
tasks.py — Task Record Handler

Purpose:
- Fold the several spellings clients use for task fields (`listName`,
  `list_name`, `list`, `dueDate`, `done`, ...) into one canonical model
  (`TaskFields`) right at the request boundary.
- List, upsert, partially update and delete tasks, always scoped to the
  authenticated user inside the same query as the mutation.
- Render stored rows in the stable external shape the frontend reads.

Missing-row writes are reported as WriteResult.NO_MATCHING_ROW internally and
as success externally, so client retries stay idempotent.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskflow.core.errors import Conflict, ValidationFailed, describe_validation_error
from taskflow.core.logging import get_logger
from taskflow.services.db_client import TaskFlowDB, WriteResult
from taskflow.utils.timestamps import now_iso

logger = get_logger(__name__)

CATEGORIES = ("people", "projects", "actions")
PRIORITIES = ("none", "low", "medium", "high", "urgent")

DEFAULT_CATEGORY = "actions"
DEFAULT_LIST_NAME = "Personal Actions"
DEFAULT_PRIORITY = "none"

MAX_TEXT_LENGTH = 2000
MAX_NOTES_LENGTH = 10000
MAX_LIST_NAME_LENGTH = 100
MAX_TAGS = 30
MAX_TAG_LENGTH = 50
MAX_ID_LENGTH = 64


# -----------------------------------------------------------------------------
# Canonical request model
# -----------------------------------------------------------------------------

class TaskFields(BaseModel):
    """
    Canonical task fields parsed from any supported request spelling.

    `model_fields_set` tells partial updates which fields the caller sent.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    text: Optional[str] = None
    category: Optional[str] = None
    list_name: Optional[str] = Field(None, validation_alias=AliasChoices("listName", "list_name", "list"))
    tags: Optional[List[str]] = None
    due_date: Optional[str] = Field(None, validation_alias=AliasChoices("dueDate", "due_date"))
    priority: Optional[str] = None
    notes: Optional[str] = None
    completed: Optional[bool] = Field(None, validation_alias=AliasChoices("completed", "done"))
    completed_at: Optional[str] = Field(None, validation_alias=AliasChoices("completedAt", "completed_at"))
    is_archived: Optional[bool] = Field(None, validation_alias=AliasChoices("isArchived", "is_archived", "archived"))
    created_at: Optional[str] = Field(None, validation_alias=AliasChoices("createdAt", "created_at"))
    last_modified: Optional[str] = Field(None, validation_alias=AliasChoices("lastModified", "last_modified"))

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)[:MAX_ID_LENGTH]

    @field_validator("text", "notes", "list_name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return None
        if not isinstance(v, (list, tuple)):
            return []
        tags = []
        for tag in v:
            cleaned = str(tag).strip()[:MAX_TAG_LENGTH]
            if cleaned and cleaned not in tags:
                tags.append(cleaned)
        return tags[:MAX_TAGS]

    @field_validator("category")
    @classmethod
    def check_category(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if v not in CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(CATEGORIES)}")
        return v

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if v not in PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(PRIORITIES)}")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def check_due_date(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        try:
            return date.fromisoformat(str(v)[:10]).isoformat()
        except ValueError:
            raise ValueError("dueDate must be YYYY-MM-DD")


def parse_task_fields(body: Any) -> TaskFields:
    """
    Raises:
        ValidationFailed: body is not an object or a field is malformed
    """
    if not isinstance(body, dict):
        raise ValidationFailed("Task body must be a JSON object")
    try:
        return TaskFields.model_validate(body)
    except ValidationError as e:
        raise ValidationFailed(describe_validation_error(e)) from e


# -----------------------------------------------------------------------------
# Row normalization
# -----------------------------------------------------------------------------

def normalize_task_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Stored row → external task shape, defaults applied."""
    return {
        "id": row.get("id"),
        "text": row.get("text") or "",
        "category": row.get("category") or DEFAULT_CATEGORY,
        "listName": row.get("list_name") or row.get("list") or DEFAULT_LIST_NAME,
        "tags": row.get("tags") or [],
        "dueDate": row.get("due_date") or None,
        "priority": row.get("priority") or DEFAULT_PRIORITY,
        "notes": row.get("notes") or "",
        "completed": bool(row.get("completed")),
        "createdAt": row.get("created_at"),
        "lastModified": row.get("last_modified") or row.get("updated_at") or row.get("created_at"),
        "completedAt": row.get("completed_at") or None,
    }


def _clean_text(text: Optional[str]) -> str:
    cleaned = (text or "").strip()[:MAX_TEXT_LENGTH]
    if not cleaned:
        raise ValidationFailed("Task text required")
    return cleaned


def _clean_list_name(list_name: Optional[str]) -> str:
    return (list_name or "").strip()[:MAX_LIST_NAME_LENGTH] or DEFAULT_LIST_NAME


# -----------------------------------------------------------------------------
# Operations
# -----------------------------------------------------------------------------

def list_tasks(db: TaskFlowDB, user_id: str) -> Dict[str, List[Dict[str, Any]]]:
    rows = db.list_tasks(user_id)
    tasks = [normalize_task_row(r) for r in rows if not r.get("is_archived")]
    archived = [normalize_task_row(r) for r in rows if r.get("is_archived")]
    return {"tasks": tasks, "archived": archived}


def upsert_task(db: TaskFlowDB, user_id: str, fields: TaskFields) -> str:
    """
    Create a task, or overwrite the caller's task with the same id.

    Returns:
        The task id (generated when the caller sent none).

    Raises:
        ValidationFailed: empty text
        Conflict: a concurrent request of the same user inserted this id first
    """
    now = now_iso()
    completed = bool(fields.completed)
    row: Dict[str, Any] = {
        "text": _clean_text(fields.text),
        "category": fields.category or DEFAULT_CATEGORY,
        "list_name": _clean_list_name(fields.list_name),
        "tags": fields.tags or [],
        "due_date": fields.due_date,
        "priority": fields.priority or DEFAULT_PRIORITY,
        "notes": (fields.notes or "")[:MAX_NOTES_LENGTH],
        "completed": completed,
        "completed_at": fields.completed_at or (now if completed else None),
        "is_archived": bool(fields.is_archived),
        "last_modified": fields.last_modified or now,
    }
    if fields.created_at:
        row["created_at"] = fields.created_at

    task_id = fields.id
    if task_id:
        if db.update_task(user_id, task_id, row) is WriteResult.UPDATED:
            logger.debug("Overwrote task %s", task_id)
            return task_id
    else:
        task_id = str(uuid.uuid4())

    insert_row = {"id": task_id, "user_id": user_id, "created_at": fields.created_at or now, **row}
    db.insert_task(insert_row, conflict=Conflict("Task id already in use"))
    logger.debug("Created task %s", task_id)
    return task_id


def patch_task(db: TaskFlowDB, user_id: str, task_id: str, fields: TaskFields) -> WriteResult:
    """
    Write only the fields present in the request; always refresh last_modified.
    """
    if not task_id:
        raise ValidationFailed("Task ID required")

    sent = fields.model_fields_set
    now = now_iso()
    updates: Dict[str, Any] = {"last_modified": now}

    if "text" in sent:
        updates["text"] = _clean_text(fields.text)
    if "category" in sent:
        updates["category"] = fields.category or DEFAULT_CATEGORY
    if "list_name" in sent:
        updates["list_name"] = _clean_list_name(fields.list_name)
    if "tags" in sent:
        updates["tags"] = fields.tags or []
    if "due_date" in sent:
        updates["due_date"] = fields.due_date
    if "priority" in sent:
        updates["priority"] = fields.priority or DEFAULT_PRIORITY
    if "notes" in sent:
        updates["notes"] = (fields.notes or "")[:MAX_NOTES_LENGTH]
    if "is_archived" in sent:
        updates["is_archived"] = bool(fields.is_archived)
    if "completed" in sent:
        updates["completed"] = bool(fields.completed)
        if "completed_at" not in sent:
            updates["completed_at"] = now if fields.completed else None
    if "completed_at" in sent:
        updates["completed_at"] = fields.completed_at

    result = db.update_task(user_id, task_id, updates)
    if result is WriteResult.NO_MATCHING_ROW:
        logger.debug("Patch for task %s matched no row of user %s", task_id, user_id)
    return result


def delete_task(db: TaskFlowDB, user_id: str, task_id: str) -> WriteResult:
    if not task_id:
        raise ValidationFailed("Task ID required")
    return db.delete_task(user_id, str(task_id))
