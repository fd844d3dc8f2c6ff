"""
briefing.py — AI Briefing / Prioritization Endpoint (API Layer)

POST /briefing  {mode?, filters?, custom_context?}

mode: "briefing" (narrative), "prioritize" (ranked urgency list) or "both".
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from taskflow.api.deps import current_user_id, get_completion_client_factory, get_db
from taskflow.core.config import Settings, get_settings
from taskflow.services.ai.briefing import generate_briefing
from taskflow.services.ai.llm_client import CompletionClientFactory
from taskflow.services.db_client import TaskFlowDB

router = APIRouter(
    prefix="/briefing",
    tags=["ai"]
)


class BriefingRequest(BaseModel):
    mode: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None
    custom_context: Optional[str] = None


@router.post("")
def briefing(
    payload: BriefingRequest,
    user_id: str = Depends(current_user_id),
    db: TaskFlowDB = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client_factory: CompletionClientFactory = Depends(get_completion_client_factory),
):
    """
    Returns {mode, task_count, briefing, prioritized_tasks, generated_at, model}.
    """
    return generate_briefing(
        db,
        settings,
        client_factory,
        user_id,
        mode=payload.mode,
        filters=payload.filters,
        custom_context=payload.custom_context,
    )
