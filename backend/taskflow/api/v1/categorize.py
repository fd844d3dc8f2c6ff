"""
categorize.py — AI Task Categorization Endpoint (API Layer)

POST /categorize

Accepts either a session (X-Session header) or a caller-supplied `apiKey`.
With a session the key is taken from the body, then the user's stored key,
then the configured fallback; the user's stored AI context is added to the
prompt when the body has none.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from taskflow.api.deps import get_completion_client_factory, get_db, session_token
from taskflow.core.config import Settings, get_settings
from taskflow.core.errors import Unauthenticated
from taskflow.core.logging import get_logger
from taskflow.services.ai.categorize import categorize_text
from taskflow.services.ai.llm_client import CompletionClientFactory, require_text, resolve_api_key
from taskflow.services.db_client import TaskFlowDB
from taskflow.services.sessions import require_session
from taskflow.services.user_settings import load_bag

logger = get_logger(__name__)

router = APIRouter(
    prefix="/categorize",
    tags=["ai"]
)


@router.post("")
def categorize(
    body: Dict[str, Any] = Body(...),
    token: Optional[str] = Depends(session_token),
    db: TaskFlowDB = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client_factory: CompletionClientFactory = Depends(get_completion_client_factory),
):
    """
    Body: {text | taskText, existingLists?, context?, apiKey?}

    Returns the normalized classification:
        {category, listName, text, tags, dueDate}
    """
    text = require_text(body.get("text") or body.get("taskText"), "text")
    provided_key = body.get("apiKey") if isinstance(body.get("apiKey"), str) else None
    context = body.get("context") if isinstance(body.get("context"), str) else None

    stored_key = None
    if token:
        user_id = require_session(db, token)
        bag = load_bag(db, user_id)
        stored_key = bag.get("ai_api_key")
        context = context or bag.get("ai_context")
    elif not provided_key:
        raise Unauthenticated("Session or apiKey required")

    client = client_factory(resolve_api_key(settings, provided_key, stored_key))
    return categorize_text(client, text, body.get("existingLists"), context)
