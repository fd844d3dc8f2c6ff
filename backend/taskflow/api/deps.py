"""
deps.py — Shared FastAPI dependencies

Everything a route needs from outside the request (settings, record store,
completion client factory, the authenticated user) is handed in here, so
tests can swap any of it through `app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Depends, Header

from taskflow.core.config import Settings, get_settings
from taskflow.core.database import create_supabase_client
from taskflow.services.ai.llm_client import CompletionClientFactory, make_client_factory
from taskflow.services.db_client import TaskFlowDB
from taskflow.services.sessions import require_admin, require_session

SESSION_HEADER = "X-Session"


def get_db(settings: Settings = Depends(get_settings)) -> TaskFlowDB:
    return TaskFlowDB(create_supabase_client(settings))


def get_completion_client_factory(settings: Settings = Depends(get_settings)) -> CompletionClientFactory:
    return make_client_factory(settings)


def session_token(x_session: Optional[str] = Header(None, alias=SESSION_HEADER)) -> Optional[str]:
    return x_session.strip() if x_session else None


def current_user_id(
    token: Optional[str] = Depends(session_token),
    db: TaskFlowDB = Depends(get_db),
) -> str:
    """Session Guard as a dependency: 401 unless the token is live."""
    return require_session(db, token)


def current_admin_id(
    token: Optional[str] = Depends(session_token),
    db: TaskFlowDB = Depends(get_db),
) -> str:
    """401 without a live session, 403 unless its owner is an admin."""
    return require_admin(db, token)
