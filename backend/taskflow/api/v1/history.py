"""
history.py — Task History Endpoints (API Layer)

- GET    /history → caller's 200 most recent entries, newest first
- POST   /history → append one entry (`{"entry": {...}}`)
- DELETE /history → clear all of the caller's entries
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from taskflow.api.deps import current_user_id, get_db
from taskflow.services import history as history_service
from taskflow.services.db_client import TaskFlowDB

router = APIRouter(
    prefix="/history",
    tags=["history"]
)


@router.get("")
def list_history(
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    return {"history": history_service.list_recent(db, user_id)}


@router.post("")
def append_history(
    body: Dict[str, Any] = Body(...),
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    entry = history_service.parse_entry(body)
    history_service.append_entry(db, user_id, entry)
    return {"ok": True}


@router.delete("")
def clear_history(
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    history_service.clear(db, user_id)
    return {"ok": True}
