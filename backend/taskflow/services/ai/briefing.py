"""
briefing.py — AI daily briefing and task prioritization.

Flow:
1. Fetch the caller's open tasks (not completed, not archived), apply filters.
2. Format them into a deterministic numbered listing.
3. Ask the completion API for a narrative briefing, a ranked urgency list,
   or both in one round trip.
4. Split the answer. If the ranking cannot be found the whole answer becomes
   the narrative and the ranking is empty; that is still a success.

An empty task set short-circuits with a fixed narrative and no upstream call.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from taskflow.core.config import Settings
from taskflow.core.errors import ValidationFailed
from taskflow.core.logging import get_logger
from taskflow.services.ai.llm_client import (
    CompletionClientFactory,
    resolve_api_key,
    split_json_and_text,
)
from taskflow.services.db_client import TaskFlowDB
from taskflow.services.tasks import normalize_task_row
from taskflow.services.user_settings import load_bag
from taskflow.utils.timestamps import now_iso, parse_date

logger = get_logger(__name__)

MODES = ("briefing", "prioritize", "both")
DEFAULT_MODE = "briefing"

NO_TASKS_BRIEFING = "No open tasks. Your list is clear, so enjoy the breathing room."

MAX_CONTEXT_LENGTH = 1000
MAX_NOTES_IN_PROMPT = 200

_BRIEFING_INSTRUCTIONS = """Create a concise daily briefing in Markdown with these sections:
**TODAY'S FOCUS**: the top 3 priorities for today
**RISKS**: overdue items and anything blocked or waiting on someone
**QUICK WINS**: small items that can be knocked out fast
**RECOMMENDATION**: one sentence on where to start

Keep it tight; this is read on a commute."""

_RANKING_SCHEMA = """{"prioritized": [{"index": <task number>, "urgency": <1-10, 10 = most urgent>, "reason": "<one line>"}]}"""


# -----------------------------------------------------------------------------
# Task listing
# -----------------------------------------------------------------------------

def filter_tasks(tasks: List[Dict[str, Any]], filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Apply optional listName / category / tag filters (case-insensitive)."""
    if not filters:
        return tasks
    list_name = filters.get("listName") or filters.get("list_name") or filters.get("list")
    category = filters.get("category")
    tag = filters.get("tag")

    selected = []
    for task in tasks:
        if list_name and task["listName"].lower() != str(list_name).lower():
            continue
        if category and task["category"] != category:
            continue
        if tag and str(tag).lower() not in [t.lower() for t in task["tags"]]:
            continue
        selected.append(task)
    return selected


def describe_due(due_date: Any, today: date) -> str:
    due = parse_date(due_date)
    if due is None:
        return "no due date"
    delta = (due - today).days
    if delta < 0:
        return f"due {due.isoformat()} (OVERDUE by {-delta}d)"
    if delta == 0:
        return f"due {due.isoformat()} (due today)"
    return f"due {due.isoformat()} (in {delta}d)"


def task_status(task: Dict[str, Any]) -> str:
    tags = [t.lower() for t in task.get("tags", [])]
    if "waiting" in tags:
        return "waiting"
    return "open"


def format_task_listing(tasks: List[Dict[str, Any]], today: date) -> str:
    """
    One line per task, numbered from 1 in the given order:

        1. [high] people/Shane: Call Shane | due 2026-10-01 (OVERDUE by 3d) | status: open
    """
    lines = []
    for index, task in enumerate(tasks, start=1):
        line = (
            f"{index}. [{task['priority']}] {task['category']}/{task['listName']}: {task['text']}"
            f" | {describe_due(task['dueDate'], today)}"
            f" | status: {task_status(task)}"
        )
        if task["tags"]:
            line += f" | tags: {', '.join(task['tags'])}"
        if task["notes"]:
            line += f" | notes: {task['notes'][:MAX_NOTES_IN_PROMPT]}"
        lines.append(line)
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Prompting
# -----------------------------------------------------------------------------

def build_prompt(mode: str, listing: str, today: date, context: str) -> str:
    prompt = "You are an executive assistant reviewing a task list.\n"
    prompt += f"Today is {today.isoformat()}.\n"
    if context:
        prompt += f"Context from the user: {context}\n"
    prompt += f"\nOpen tasks:\n{listing}\n\n"

    if mode == "briefing":
        prompt += _BRIEFING_INSTRUCTIONS
    elif mode == "prioritize":
        prompt += (
            "Score every task by urgency, considering due dates, priority and status. "
            f"Return ONLY JSON in this shape:\n{_RANKING_SCHEMA}"
        )
    else:
        prompt += (
            "Do two things in one answer.\n"
            "First, score every task by urgency and output the scores as a ```json fenced block "
            f"in this shape:\n{_RANKING_SCHEMA}\n"
            "Then, after the block, write the briefing.\n"
            f"{_BRIEFING_INSTRUCTIONS}"
        )
    return prompt


def _clamp_urgency(value: Any) -> int:
    try:
        urgency = int(round(float(value)))
    except (TypeError, ValueError):
        return 5
    return max(1, min(10, urgency))


def parse_ranking(parsed: Any, tasks: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Map the model's {index, urgency, reason} entries back onto tasks.

    Unknown or repeated indices are dropped. Sorted by urgency, most urgent
    first, ties by listing order.
    """
    if isinstance(parsed, dict):
        entries = parsed.get("prioritized") or parsed.get("tasks") or []
    elif isinstance(parsed, list):
        entries = parsed
    else:
        entries = []
    if not isinstance(entries, list):
        return []

    ranked = []
    seen = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            index = int(entry.get("index"))
        except (TypeError, ValueError):
            continue
        if index < 1 or index > len(tasks) or index in seen:
            continue
        seen.add(index)
        task = tasks[index - 1]
        ranked.append({
            "id": task["id"],
            "index": index,
            "text": task["text"],
            "urgency": _clamp_urgency(entry.get("urgency")),
            "reason": str(entry.get("reason") or "").strip(),
            "priority": task["priority"],
            "category": task["category"],
            "listName": task["listName"],
            "dueDate": task["dueDate"],
        })

    ranked.sort(key=lambda item: (-item["urgency"], item["index"]))
    return ranked


def split_response(mode: str, content: str, tasks: List[Dict[str, Any]]) -> Dict[str, Any]:
    if mode == "briefing":
        return {"briefing": content, "prioritized_tasks": []}

    parsed, narrative = split_json_and_text(content)
    ranked = parse_ranking(parsed, tasks) if parsed is not None else []
    if not ranked:
        logger.warning("No ranking found in %s response; returning it as narrative", mode)
        return {"briefing": content, "prioritized_tasks": []}
    return {"briefing": narrative, "prioritized_tasks": ranked}


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

def generate_briefing(
    db: TaskFlowDB,
    settings: Settings,
    client_factory: CompletionClientFactory,
    user_id: str,
    mode: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
    custom_context: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Raises:
        ValidationFailed: unknown mode or malformed filters
        UpstreamError: no API key, provider error
    """
    mode = mode or DEFAULT_MODE
    if mode not in MODES:
        raise ValidationFailed(f"mode must be one of {', '.join(MODES)}")
    if filters is not None and not isinstance(filters, dict):
        raise ValidationFailed("filters must be an object")

    today = today or date.today()
    tasks = filter_tasks([normalize_task_row(r) for r in db.list_open_tasks(user_id)], filters)

    result: Dict[str, Any] = {
        "mode": mode,
        "task_count": len(tasks),
        "generated_at": now_iso(),
    }
    if not tasks:
        result.update({"briefing": NO_TASKS_BRIEFING, "prioritized_tasks": [], "model": None})
        return result

    bag = load_bag(db, user_id)
    context_parts = [
        str(part).strip()
        for part in (bag.get("ai_context"), custom_context)
        if isinstance(part, str) and part.strip()
    ]
    context = " ".join(context_parts)[:MAX_CONTEXT_LENGTH]

    client = client_factory(resolve_api_key(settings, bag.get("ai_api_key")))
    prompt = build_prompt(mode, format_task_listing(tasks, today), today, context)
    logger.info("Requesting %s for %d tasks", mode, len(tasks))
    content = client.complete(
        [{"role": "user", "content": prompt}],
        temperature=0.4 if mode == "prioritize" else 0.7,
        max_tokens=1200 if mode == "both" else 800,
        json_mode=(mode == "prioritize"),
    )

    result.update(split_response(mode, content, tasks))
    result["model"] = client.model
    return result
