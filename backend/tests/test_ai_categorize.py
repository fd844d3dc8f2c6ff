"""
Tests for AI categorization.

Tests verify that:
- Fenced JSON answers are parsed and normalized
- Existing lists and the user's context reach the prompt
- API key precedence is body, stored, then configured fallback
- Unparseable answers and provider errors surface as 500s
"""

from __future__ import annotations

from datetime import date

import pytest

from taskflow.core.errors import UpstreamError
from taskflow.services.ai.categorize import (
    build_system_prompt,
    normalize_classification,
    normalize_existing_lists,
)

CATEGORIZE = "/api/v1/categorize"

SHANE_ANSWER = """```json
{"category": "people", "listName": "Shane", "text": "Call Shane about the budget", "tags": ["follow-up"], "dueDate": "2026-10-20"}
```"""


def test_categorize_with_session(client, alice, llm, llm_factory):
    llm.queue(SHANE_ANSWER)

    response = client.post(
        CATEGORIZE,
        json={"text": "call shane re budget by tuesday", "existingLists": {"people": ["Shane", "Priya"]}},
        headers=alice,
    )

    assert response.status_code == 200
    assert response.json() == {
        "category": "people",
        "listName": "Shane",
        "text": "Call Shane about the budget",
        "tags": ["follow-up"],
        "dueDate": "2026-10-20",
    }
    assert llm_factory.keys == ["sk-fallback"]

    call = llm.calls[0]
    assert call["json_mode"] is True
    system, user = call["messages"]
    assert "People: Shane, Priya" in system["content"]
    assert user == {"role": "user", "content": "call shane re budget by tuesday"}


def test_stored_context_and_key_are_used(client, alice, llm, llm_factory):
    client.post(
        "/api/v1/settings",
        json={"settings": {"ai_context": "I lead the platform team", "ai_api_key": "sk-user"}},
        headers=alice,
    )
    llm.queue('{"category": "actions", "listName": "Personal Actions", "text": "Renew passport"}')

    response = client.post(CATEGORIZE, json={"taskText": "renew passport"}, headers=alice)

    assert response.status_code == 200
    assert llm_factory.keys == ["sk-user"]
    assert "About the user: I lead the platform team" in llm.calls[0]["messages"][0]["content"]


def test_body_key_wins(client, alice, llm, llm_factory):
    client.post("/api/v1/settings", json={"settings": {"ai_api_key": "sk-user"}}, headers=alice)
    llm.queue('{"category": "actions"}')

    client.post(CATEGORIZE, json={"text": "x", "apiKey": "sk-body"}, headers=alice)
    assert llm_factory.keys == ["sk-body"]


def test_api_key_without_session(client, llm, llm_factory):
    llm.queue('{"category": "projects", "listName": "Q4 Planning", "text": "Prep Q4 deck"}')

    response = client.post(CATEGORIZE, json={"text": "prep q4 deck", "apiKey": "sk-anon"})

    assert response.status_code == 200
    assert response.json()["category"] == "projects"
    assert llm_factory.keys == ["sk-anon"]


def test_requires_session_or_key(client, llm):
    response = client.post(CATEGORIZE, json={"text": "anything"})
    assert response.status_code == 401
    assert response.json() == {"error": "Session or apiKey required"}
    assert llm.calls == []


def test_missing_text(client, alice):
    response = client.post(CATEGORIZE, json={"text": "  "}, headers=alice)
    assert response.status_code == 400
    assert response.json() == {"error": "text is required"}


def test_unparseable_answer(client, alice, llm):
    llm.queue("Sure! This looks like a task about Shane.")

    response = client.post(CATEGORIZE, json={"text": "call shane"}, headers=alice)
    assert response.status_code == 500
    assert response.json() == {"error": "Could not parse AI response as JSON"}


def test_provider_error(client, alice, llm):
    llm.error = UpstreamError("Rate limit reached")

    response = client.post(CATEGORIZE, json={"text": "call shane"}, headers=alice)
    assert response.status_code == 500
    assert response.json() == {"error": "Rate limit reached"}


def test_normalize_fills_gaps():
    result = normalize_classification(
        {"category": "chores", "listName": "  ", "tags": "urgent", "dueDate": "soon"},
        "original text",
    )
    assert result == {
        "category": "actions",
        "listName": "Personal Actions",
        "text": "original text",
        "tags": [],
        "dueDate": None,
    }


@pytest.mark.parametrize(
    "existing, expected",
    [
        (None, {}),
        (["Shane", " ", "Q4"], {"any": ["Shane", "Q4"]}),
        ({"people": ["Shane"], "projects": [], "bogus": ["x"]}, {"people": ["Shane"]}),
    ],
)
def test_normalize_existing_lists(existing, expected):
    assert normalize_existing_lists(existing) == expected


def test_prompt_includes_today():
    prompt = build_system_prompt({}, None, date(2026, 10, 19))
    assert "Today's date is 2026-10-19." in prompt
    assert "existing lists" not in prompt
