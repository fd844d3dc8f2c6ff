"""
user_settings.py — Settings Handler

Per-user preference bag stored as one JSON document in tf_settings.

Only allow-listed fields are stored, each coerced to its type and capped in
length; anything else in the request is dropped. Saves merge field-by-field
over the stored bag (last write wins per field, not per document).
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from taskflow.core.errors import ValidationFailed
from taskflow.core.logging import get_logger
from taskflow.services.db_client import TaskFlowDB
from taskflow.utils.timestamps import now_iso

logger = get_logger(__name__)

AI_PROVIDERS = ("openai",)

MAX_CONTEXT_LENGTH = 2000
MAX_API_KEY_LENGTH = 200
MAX_LISTS = 200
MAX_LIST_ID_LENGTH = 64
MAX_LIST_NAME_LENGTH = 100
DEFAULT_LIST_ORDER = 99

DEFAULT_SETTINGS: Dict[str, Any] = {
    "ai_context": "",
    "ai_notes": "",
    "ai_provider": "openai",
    "lists": [],
}

_TRUE_STRINGS = {"1", "true", "yes", "y", "on"}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _coerce_order(value: Any) -> float | int:
    if isinstance(value, bool):
        return DEFAULT_LIST_ORDER
    if isinstance(value, (int, float)) and math.isfinite(value):
        return value
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return DEFAULT_LIST_ORDER
        if math.isfinite(parsed):
            return int(parsed) if parsed.is_integer() else parsed
    return DEFAULT_LIST_ORDER


def _sanitize_list(entry: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(entry, dict):
        return None
    return {
        "id": str(entry.get("id") or "")[:MAX_LIST_ID_LENGTH],
        "name": str(entry.get("name") or "")[:MAX_LIST_NAME_LENGTH],
        "pinned": _coerce_bool(entry.get("pinned")),
        "collapsed": _coerce_bool(entry.get("collapsed")),
        "order": _coerce_order(entry.get("order")),
    }


def sanitize_settings(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep the allow-listed fields present in `raw`, coerced and capped.

    Fields absent from `raw` are absent from the result so the merge leaves
    their stored values alone.
    """
    safe: Dict[str, Any] = {}

    for key in ("ai_context", "ai_notes"):
        if key in raw:
            value = raw[key]
            safe[key] = value[:MAX_CONTEXT_LENGTH] if isinstance(value, str) else ""

    if "ai_provider" in raw:
        provider = str(raw["ai_provider"] or "").strip().lower()
        if provider not in AI_PROVIDERS:
            raise ValidationFailed(f"ai_provider must be one of {', '.join(AI_PROVIDERS)}")
        safe["ai_provider"] = provider

    if "ai_api_key" in raw:
        key = raw["ai_api_key"]
        safe["ai_api_key"] = key.strip()[:MAX_API_KEY_LENGTH] if isinstance(key, str) else ""

    if "lists" in raw:
        lists: List[Dict[str, Any]] = []
        if isinstance(raw["lists"], list):
            for entry in raw["lists"][:MAX_LISTS]:
                cleaned = _sanitize_list(entry)
                if cleaned is not None:
                    lists.append(cleaned)
        safe["lists"] = lists

    return safe


def public_view(bag: Dict[str, Any]) -> Dict[str, Any]:
    """Defaults + stored bag, with the API key replaced by a presence flag."""
    view = {**DEFAULT_SETTINGS, **{k: v for k, v in bag.items() if k != "ai_api_key"}}
    view["has_ai_api_key"] = bool(bag.get("ai_api_key"))
    return view


def load_bag(db: TaskFlowDB, user_id: str) -> Dict[str, Any]:
    """Stored bag, or an empty one for a first-time user."""
    return db.get_settings_bag(user_id) or {}


def get_settings(db: TaskFlowDB, user_id: str) -> Dict[str, Any]:
    return public_view(load_bag(db, user_id))


def save_settings(db: TaskFlowDB, user_id: str, incoming: Any) -> Dict[str, Any]:
    """
    Merge the sanitized partial bag over the stored one and persist the union.

    Raises:
        ValidationFailed: payload is not an object
    """
    if not isinstance(incoming, dict):
        raise ValidationFailed("Invalid settings payload")

    safe = sanitize_settings(incoming)
    merged = {**load_bag(db, user_id), **safe}
    if merged.get("ai_api_key") == "":
        merged.pop("ai_api_key")

    db.upsert_settings_bag(user_id, merged, now_iso())
    logger.info("Saved settings for user %s fields=%s", user_id, sorted(safe))
    return public_view(merged)
