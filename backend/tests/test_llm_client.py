"""
Tests for completion-response parsing and API key resolution.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from taskflow.core.errors import UpstreamError, ValidationFailed
from taskflow.services.ai.llm_client import (
    CompletionClient,
    parse_json_response,
    require_text,
    resolve_api_key,
    split_json_and_text,
    strip_code_fences,
)


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_parse_json_response_finds_object_in_prose():
    assert parse_json_response('Here you go: {"category": "people"} hope that helps') == {"category": "people"}


def test_parse_json_response_rejects_non_objects():
    with pytest.raises(UpstreamError):
        parse_json_response("[1, 2, 3]")
    with pytest.raises(UpstreamError):
        parse_json_response("no json here")


def test_split_json_and_text_without_json():
    parsed, rest = split_json_and_text("  just words  ")
    assert parsed is None
    assert rest == "just words"


def test_split_json_and_text_with_trailing_object():
    parsed, rest = split_json_and_text('Summary first.\n{"prioritized": []}')
    assert parsed == {"prioritized": []}
    assert rest == "Summary first."


def test_resolve_api_key_order(settings):
    assert resolve_api_key(settings, "sk-body", "sk-stored") == "sk-body"
    assert resolve_api_key(settings, None, "sk-stored") == "sk-stored"
    assert resolve_api_key(settings, "", "  ") == "sk-fallback"

    empty = settings.model_copy(update={"OPENAI_API_KEY": ""})
    with pytest.raises(UpstreamError) as exc:
        resolve_api_key(empty, None)
    assert exc.value.message == "No AI API key configured"


def test_require_text():
    assert require_text("  hi ", "text") == "hi"
    with pytest.raises(ValidationFailed):
        require_text(None, "text")


def _fake_openai(content):
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        return response

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create))), calls


def test_completion_client_sends_one_request():
    client = CompletionClient("sk-test", "gpt-4o-mini")
    client._client, calls = _fake_openai("  hello  ")

    assert client.complete([{"role": "user", "content": "hi"}], json_mode=True) == "hello"
    assert len(calls) == 1
    assert calls[0]["model"] == "gpt-4o-mini"
    assert calls[0]["response_format"] == {"type": "json_object"}


def test_completion_client_rejects_empty_answer():
    client = CompletionClient("sk-test", "gpt-4o-mini")
    client._client, _ = _fake_openai("   ")

    with pytest.raises(UpstreamError) as exc:
        client.complete([{"role": "user", "content": "hi"}])
    assert exc.value.message == "Empty response from AI provider"
