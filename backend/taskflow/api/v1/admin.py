"""
admin.py — User Management Endpoints (API Layer, admin only)

- GET  /admin → list users (no hashes)
- POST /admin → create a user
- PUT  /admin → reset PIN, rename, toggle admin / active

Deactivating a user revokes all of their sessions.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from taskflow.api.deps import current_admin_id, get_db
from taskflow.core.config import Settings, get_settings
from taskflow.core.logging import get_logger
from taskflow.services import users as user_service
from taskflow.services.db_client import TaskFlowDB

logger = get_logger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"]
)

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class CreateUserRequest(BaseModel):
    username: Optional[str] = None
    pin: Any = None
    display_name: Optional[str] = None
    is_admin: bool = False


class UpdateUserRequest(BaseModel):
    user_id: Optional[str] = None
    pin: Any = None
    display_name: Optional[str] = None
    is_admin: Optional[bool] = None
    is_active: Optional[bool] = None


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.get("")
def list_users(
    admin_id: str = Depends(current_admin_id),
    db: TaskFlowDB = Depends(get_db),
):
    return {"users": user_service.list_users(db)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateUserRequest,
    admin_id: str = Depends(current_admin_id),
    db: TaskFlowDB = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = user_service.create_user(
        db,
        settings,
        payload.username,
        payload.pin,
        display_name=payload.display_name,
        is_admin=payload.is_admin,
    )
    logger.info("Admin %s created user %s", admin_id, user["username"])
    return {"success": True, "user_id": user["user_id"], "username": user["username"]}


@router.put("")
def update_user(
    payload: UpdateUserRequest,
    admin_id: str = Depends(current_admin_id),
    db: TaskFlowDB = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user_service.update_user(
        db,
        settings,
        payload.user_id,
        pin=str(payload.pin) if payload.pin not in (None, "") else None,
        display_name=payload.display_name,
        is_admin=payload.is_admin,
        is_active=payload.is_active,
    )
    return {"success": True}
