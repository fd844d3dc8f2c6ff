"""
tasks.py — Task CRUD Endpoints (API Layer)

Purpose:
- List, upsert, partially update and delete the caller's tasks.
- Every route runs the Session Guard first; every write is scoped to the
  caller inside the same query (see services/tasks.py).

Updates and deletes that match no row answer success, so client retries
are idempotent.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from taskflow.api.deps import current_user_id, get_db
from taskflow.core.errors import ValidationFailed
from taskflow.core.logging import get_logger
from taskflow.services import tasks as task_service
from taskflow.services.db_client import TaskFlowDB

logger = get_logger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"]
)


def _id_from(query_id: Optional[str], body: Optional[Dict[str, Any]]) -> str:
    task_id = query_id or (body or {}).get("id")
    if task_id is None or str(task_id).strip() == "":
        raise ValidationFailed("Task ID required")
    return str(task_id)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.get("")
def list_tasks(
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    """
    GET /tasks → {"tasks": [...], "archived": [...]}
    """
    return task_service.list_tasks(db, user_id)


@router.post("")
def upsert_task(
    body: Dict[str, Any] = Body(...),
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    """
    POST /tasks: create, or overwrite the caller's task with the same id.
    """
    fields = task_service.parse_task_fields(body)
    task_id = task_service.upsert_task(db, user_id, fields)
    return {"ok": True, "id": task_id}


@router.patch("")
def patch_task_by_body(
    body: Dict[str, Any] = Body(...),
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    """
    PATCH /tasks with the id in the body.
    """
    fields = task_service.parse_task_fields(body)
    task_service.patch_task(db, user_id, _id_from(None, body), fields)
    return {"success": True}


@router.patch("/{task_id}")
def patch_task(
    task_id: str,
    body: Dict[str, Any] = Body(...),
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    """
    PATCH /tasks/{task_id}: only the fields present are written.
    """
    fields = task_service.parse_task_fields(body)
    task_service.patch_task(db, user_id, task_id, fields)
    return {"success": True}


@router.delete("")
def delete_task_by_query(
    id: Optional[str] = Query(None),
    body: Optional[Dict[str, Any]] = Body(None),
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    """
    DELETE /tasks?id=... (or the id in the body).
    """
    task_service.delete_task(db, user_id, _id_from(id, body))
    return {"success": True}


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    """
    DELETE /tasks/{task_id}: a missing or foreign id is a silent no-op.
    """
    task_service.delete_task(db, user_id, task_id)
    return {"success": True}
