"""
settings.py — User Settings Endpoints (API Layer)

- GET  /settings → {"settings": {...}} (defaults for a first-time user)
- POST /settings → {"settings": {...partial...}} merged field-by-field
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from taskflow.api.deps import current_user_id, get_db
from taskflow.services import user_settings
from taskflow.services.db_client import TaskFlowDB

router = APIRouter(
    prefix="/settings",
    tags=["settings"]
)


@router.get("")
def get_settings(
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    return {"settings": user_settings.get_settings(db, user_id)}


@router.post("")
def save_settings(
    body: Dict[str, Any] = Body(...),
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
):
    saved = user_settings.save_settings(db, user_id, body.get("settings"))
    return {"success": True, "settings": saved}
