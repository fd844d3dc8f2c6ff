"""
categorize.py — AI categorization of free-form task text.

Builds a strict-JSON classification prompt (category, target list, cleaned
text, tags, due date), sends it in one completion call and normalizes the
parsed answer. Unparseable answers and provider errors are surfaced to the
caller; nothing is retried.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from taskflow.core.logging import get_logger
from taskflow.services.ai.llm_client import CompletionClient, parse_json_response
from taskflow.services.tasks import CATEGORIES, DEFAULT_CATEGORY, DEFAULT_LIST_NAME, MAX_TEXT_LENGTH

logger = get_logger(__name__)

SUGGESTED_TAGS = ("waiting", "follow-up", "action", "to-contact", "urgent")
MAX_LISTS_PER_GROUP = 100

_GROUP_LABELS = {
    "people": "People",
    "projects": "Projects/Meetings",
    "actions": "Actions",
}


def normalize_existing_lists(existing: Any) -> Dict[str, List[str]]:
    """
    Accept either a flat list of names or a {people, projects, actions} mapping.
    """
    groups: Dict[str, List[str]] = {}
    if isinstance(existing, (list, tuple)):
        names = [str(n).strip() for n in existing if str(n).strip()]
        if names:
            groups["any"] = names[:MAX_LISTS_PER_GROUP]
    elif isinstance(existing, dict):
        for key in CATEGORIES:
            values = existing.get(key)
            if isinstance(values, (list, tuple)):
                names = [str(n).strip() for n in values if str(n).strip()]
                if names:
                    groups[key] = names[:MAX_LISTS_PER_GROUP]
    return groups


def build_system_prompt(existing_lists: Dict[str, List[str]], context: Optional[str], today: date) -> str:
    prompt = f"""You are a task categorization assistant. Analyze the user's task and return ONLY valid JSON with this structure:
{{
  "category": "people" | "projects" | "actions",
  "listName": "specific person name, project name, or '{DEFAULT_LIST_NAME}'",
  "text": "cleaned up task text",
  "tags": [{", ".join(f'"{t}"' for t in SUGGESTED_TAGS)}] (array of applicable tags),
  "dueDate": "YYYY-MM-DD or null"
}}

Today's date is {today.isoformat()}.
"""

    if existing_lists:
        prompt += "\nIMPORTANT: The user has these existing lists. ALWAYS try to match one of these before creating new ones:\n"
        for key, names in existing_lists.items():
            label = _GROUP_LABELS.get(key, "Lists")
            prompt += f"- {label}: {', '.join(names)}\n"
        prompt += (
            "\nMatch names flexibly (e.g., \"Shane\" matches \"shane\", \"talk to shane\", etc.). "
            "Only create a new list if the task clearly refers to a different person/project.\n"
        )

    if context:
        prompt += f"\nAbout the user: {context}\n"

    prompt += f"""
Guidelines:
- If mentioning a person's name (talk to X, ask X, email X), use category "people" and listName as their name
- If mentioning a meeting, project, or initiative, use category "projects" and listName as the meeting/project name
- If it's a personal action without a specific person/meeting context, use category "actions" and listName "{DEFAULT_LIST_NAME}"
- Extract any date mentions and convert to YYYY-MM-DD format
- Apply relevant tags based on context
- Clean up the text while preserving meaning"""
    return prompt


def _normalize_due_date(value: Any) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10]).isoformat()
    except ValueError:
        return None


def normalize_classification(raw: Dict[str, Any], original_text: str) -> Dict[str, Any]:
    """Fill gaps and drop junk in the model's answer."""
    category = raw.get("category")
    if category not in CATEGORIES:
        category = DEFAULT_CATEGORY

    list_name = raw.get("listName") or raw.get("list_name")
    if not isinstance(list_name, str) or not list_name.strip():
        list_name = DEFAULT_LIST_NAME
    text = raw.get("text")
    if not isinstance(text, str) or not text.strip():
        text = original_text

    tags = raw.get("tags")
    if not isinstance(tags, list):
        tags = []

    return {
        "category": category,
        "listName": list_name.strip(),
        "text": text.strip()[:MAX_TEXT_LENGTH],
        "tags": [str(t).strip() for t in tags if str(t).strip()],
        "dueDate": _normalize_due_date(raw.get("dueDate") or raw.get("due_date")),
    }


def categorize_text(
    client: CompletionClient,
    text: str,
    existing_lists: Any = None,
    context: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Classify one task text.

    Raises:
        UpstreamError: provider error or unparseable response
    """
    groups = normalize_existing_lists(existing_lists)
    system_prompt = build_system_prompt(groups, context, today or date.today())

    content = client.complete(
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": text},
        ],
        temperature=0.3,
        max_tokens=300,
        json_mode=True,
    )
    classification = normalize_classification(parse_json_response(content), text)
    logger.info("Categorized task into %s/%s", classification["category"], classification["listName"])
    return classification
