"""
users.py — Admin user management.

Listing, creating and updating credential rows on behalf of an administrator.
Deactivating a user deletes all of their sessions (soft-deactivation); their
tasks, history and settings stay in place.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from taskflow.core.config import Settings
from taskflow.core.errors import ValidationFailed
from taskflow.core.logging import get_logger
from taskflow.services.credentials import (
    MAX_DISPLAY_NAME_LENGTH,
    create_credential,
    new_pin_fields,
    validate_pin,
)
from taskflow.services.db_client import TaskFlowDB, WriteResult
from taskflow.utils.timestamps import now_iso

logger = get_logger(__name__)


def list_users(db: TaskFlowDB) -> List[Dict[str, Any]]:
    return db.list_users()


def create_user(
    db: TaskFlowDB,
    settings: Settings,
    username: Any,
    pin: Any,
    display_name: Optional[str] = None,
    is_admin: bool = False,
) -> Dict[str, Any]:
    return create_credential(db, settings, username, pin, display_name=display_name, is_admin=is_admin)


def update_user(
    db: TaskFlowDB,
    settings: Settings,
    user_id: str,
    pin: Optional[str] = None,
    display_name: Optional[str] = None,
    is_admin: Optional[bool] = None,
    is_active: Optional[bool] = None,
) -> WriteResult:
    """
    Apply the supplied changes to one user. Omitted fields stay untouched.
    """
    if not user_id:
        raise ValidationFailed("user_id required")

    updates: Dict[str, Any] = {}
    if display_name is not None:
        updates["display_name"] = str(display_name).strip()[:MAX_DISPLAY_NAME_LENGTH]
    if is_admin is not None:
        updates["is_admin"] = bool(is_admin)
    if is_active is not None:
        updates["is_active"] = bool(is_active)
    if pin:
        updates.update(new_pin_fields(validate_pin(pin), settings.PIN_HASH_ROUNDS))

    result = WriteResult.NO_MATCHING_ROW
    if updates:
        updates["updated_at"] = now_iso()
        result = db.update_user(user_id, updates)
        logger.info("Updated user %s fields=%s result=%s",
                    user_id, sorted(k for k in updates if k not in ("pin_hash", "pin_salt")), result.value)

    if is_active is False:
        removed = db.delete_sessions_for_user(user_id)
        logger.info("Deactivated user %s, revoked %d sessions", user_id, removed)

    return result
