"""
credentials.py — Credential Store Adapter

Creates, verifies and rotates username + PIN credentials held in tf_auth.

Flow summary:
- create_credential: admin create / first-run bootstrap
- verify_credential: login, issues a 30-day session and sweeps expired ones
- rotate_credential: PIN change for the session owner, or first-run setup
  when no credential row exists yet
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from taskflow.core.config import Settings
from taskflow.core.errors import (
    InvalidCredential,
    TaskFlowError,
    UsernameConflict,
    ValidationFailed,
)
from taskflow.core.logging import get_logger
from taskflow.core.security import (
    burn_pin_hash,
    generate_salt,
    hash_pin,
    is_valid_pin,
    verify_pin,
)
from taskflow.services.db_client import TaskFlowDB
from taskflow.services.sessions import issue_session, require_session, sweep_expired_sessions
from taskflow.utils.timestamps import now_iso

logger = get_logger(__name__)

INVALID_LOGIN_MESSAGE = "Invalid username or PIN"
MAX_USERNAME_LENGTH = 64
MAX_DISPLAY_NAME_LENGTH = 100


@dataclass
class LoginResult:
    token: str
    user_id: str
    username: str
    display_name: str


def normalize_username(username: Any) -> str:
    cleaned = str(username or "").strip().lower()
    if not cleaned:
        raise ValidationFailed("Username required")
    if len(cleaned) > MAX_USERNAME_LENGTH:
        raise ValidationFailed(f"Username must be at most {MAX_USERNAME_LENGTH} characters")
    return cleaned


def validate_pin(pin: Any) -> str:
    if not is_valid_pin(pin):
        raise ValidationFailed("PIN must be 4-8 digits")
    return str(pin)


def new_pin_fields(pin: str, rounds: int) -> Dict[str, str]:
    """Fresh salt and hash for a PIN."""
    salt = generate_salt()
    return {"pin_hash": hash_pin(pin, salt, rounds), "pin_salt": salt}


def create_credential(
    db: TaskFlowDB,
    settings: Settings,
    username: Any,
    pin: Any,
    display_name: Optional[str] = None,
    is_admin: bool = False,
) -> Dict[str, Any]:
    """
    Insert a new credential row.

    Raises:
        ValidationFailed: bad username or PIN
        UsernameConflict: username already taken
    """
    clean_username = normalize_username(username)
    clean_pin = validate_pin(pin)

    if db.get_user_by_username(clean_username):
        raise UsernameConflict("Username already taken")

    clean_display = str(display_name or clean_username).strip()[:MAX_DISPLAY_NAME_LENGTH] or clean_username
    now = now_iso()
    payload = {
        "user_id": str(uuid.uuid4()),
        "username": clean_username,
        "display_name": clean_display,
        "is_admin": bool(is_admin),
        "is_active": True,
        "created_at": now,
        "updated_at": now,
        **new_pin_fields(clean_pin, settings.PIN_HASH_ROUNDS),
    }
    # Unique index on username closes the race between the check and the insert.
    db.insert_user(payload, conflict=UsernameConflict("Username already taken"))
    logger.info("Created user %s (admin=%s)", clean_username, payload["is_admin"])

    return {
        "user_id": payload["user_id"],
        "username": clean_username,
        "display_name": clean_display,
        "is_admin": payload["is_admin"],
        "is_active": True,
    }


def _resolve_login_user(db: TaskFlowDB, username: Any) -> Optional[Dict[str, Any]]:
    if username is not None and str(username).strip():
        return db.get_user_by_username(normalize_username(username))

    # Single-user installs log in with the PIN alone.
    users = db.first_users(2)
    if not users:
        raise TaskFlowError("No PIN configured", status_code=404)
    if len(users) > 1:
        raise ValidationFailed("Username required")
    return users[0]


def verify_credential(db: TaskFlowDB, settings: Settings, username: Any, pin: Any) -> LoginResult:
    """
    Check a username + PIN and open a session.

    Unknown usernames, inactive users and wrong PINs all raise the same
    InvalidCredential, after the same amount of hashing work.
    """
    clean_pin = validate_pin(pin)
    user = _resolve_login_user(db, username)
    rounds = settings.PIN_HASH_ROUNDS

    if user is None:
        burn_pin_hash(clean_pin, rounds)
        logger.info("Login rejected")
        raise InvalidCredential(INVALID_LOGIN_MESSAGE)

    matched = verify_pin(clean_pin, user.get("pin_hash") or "")
    if not matched or not user.get("is_active", True):
        logger.info("Login rejected")
        raise InvalidCredential(INVALID_LOGIN_MESSAGE)

    token = issue_session(db, user["user_id"], settings.SESSION_TTL_DAYS)
    sweep_expired_sessions(db)
    logger.info("User %s logged in", user["username"])

    return LoginResult(
        token=token,
        user_id=user["user_id"],
        username=user["username"],
        display_name=user.get("display_name") or user["username"],
    )


def rotate_credential(
    db: TaskFlowDB,
    settings: Settings,
    pin: Any,
    token: Optional[str] = None,
    username: Optional[str] = None,
    display_name: Optional[str] = None,
) -> str:
    """
    Set or change a PIN and return a fresh session token.

    With no credential rows at all this is the first-run setup: the first
    user is created as an administrator without a session. Once any row
    exists a valid session is required and the PIN of its owner changes.
    Existing sessions stay valid.
    """
    clean_pin = validate_pin(pin)

    if not db.has_users():
        user = create_credential(
            db,
            settings,
            username or settings.BOOTSTRAP_USERNAME,
            clean_pin,
            display_name=display_name,
            is_admin=True,
        )
        logger.info("First-run setup created %s", user["username"])
        return issue_session(db, user["user_id"], settings.SESSION_TTL_DAYS)

    user_id = require_session(db, token)
    updates = new_pin_fields(clean_pin, settings.PIN_HASH_ROUNDS)
    updates["updated_at"] = now_iso()
    db.update_user(user_id, updates)
    logger.info("PIN rotated for user %s", user_id)

    return issue_session(db, user_id, settings.SESSION_TTL_DAYS)
