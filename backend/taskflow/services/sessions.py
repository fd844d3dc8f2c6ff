"""
sessions.py — Session Guard

Validates an opaque session token against tf_sessions and yields the owning
user id. Every user-scoped route runs this before touching any other table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from taskflow.core.errors import Forbidden, SessionExpired, Unauthenticated
from taskflow.core.logging import get_logger
from taskflow.core.security import generate_token, token_expiry
from taskflow.services.db_client import TaskFlowDB
from taskflow.utils.timestamps import parse_timestamp, to_iso, utcnow

logger = get_logger(__name__)


def require_session(db: TaskFlowDB, token: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Return the user id owning `token`.

    Raises:
        Unauthenticated: no token, or no session row for it
        SessionExpired: the session's expires_at has passed
    """
    if not token:
        raise Unauthenticated("No session token")

    session = db.get_session(token)
    if not session:
        raise Unauthenticated("Invalid session")

    expires_at = parse_timestamp(session.get("expires_at"))
    now = now or utcnow()
    if expires_at is None or now >= expires_at:
        raise SessionExpired("Session expired")

    return session["user_id"]


def require_admin(db: TaskFlowDB, token: Optional[str]) -> str:
    """Session guard plus an is_admin check on the owning user."""
    user_id = require_session(db, token)
    user = db.get_user_by_id(user_id)
    if not user or not user.get("is_admin") or not user.get("is_active", True):
        raise Forbidden("Admin access required")
    return user_id


def issue_session(db: TaskFlowDB, user_id: str, ttl_days: int) -> str:
    """Create a new session row and return its token."""
    now = utcnow()
    token = generate_token()
    db.insert_session(
        token=token,
        user_id=user_id,
        expires_at=to_iso(token_expiry(ttl_days, now)),
        created_at=to_iso(now),
    )
    return token


def sweep_expired_sessions(db: TaskFlowDB) -> int:
    """
    Best-effort removal of expired sessions. Failures are logged, not raised.
    """
    try:
        removed = db.delete_expired_sessions(to_iso(utcnow()))
    except Exception as e:
        logger.warning("Expired session sweep failed: %s", e)
        return 0
    if removed:
        logger.info("Swept %d expired sessions", removed)
    return removed
