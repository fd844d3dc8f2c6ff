"""
llm_client.py — Chat-completion client for the AI assist handlers.

One request per call: the OpenAI SDK's built-in retries are switched off and
no timeout is set beyond the SDK default. A failed call is a failed request.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from openai import OpenAI, OpenAIError

from taskflow.core.config import Settings
from taskflow.core.errors import UpstreamError, ValidationFailed
from taskflow.core.logging import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?|\n?```")
_FENCED_BLOCK_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)\n?```", re.DOTALL)


class CompletionClient:
    """
    Thin wrapper around `client.chat.completions.create`.
    """

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None):
        self.model = model
        self._client = OpenAI(api_key=api_key, base_url=base_url or None, max_retries=0)

    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 600,
        json_mode: bool = False,
    ) -> str:
        """
        Returns:
            The stripped message content of the first choice.

        Raises:
            UpstreamError: provider error or empty response
        """
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("Calling %s with %d messages", self.model, len(messages))
        try:
            response = self._client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            message = getattr(e, "message", None) or str(e) or "OpenAI API call failed"
            logger.error("Completion API error: %s", message)
            raise UpstreamError(message) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise UpstreamError("Empty response from AI provider")
        return content.strip()


CompletionClientFactory = Callable[[str], CompletionClient]


def make_client_factory(settings: Settings) -> CompletionClientFactory:
    def factory(api_key: str) -> CompletionClient:
        return CompletionClient(api_key, settings.OPENAI_MODEL, settings.OPENAI_BASE_URL)
    return factory


def resolve_api_key(settings: Settings, *candidates: Optional[str]) -> str:
    """
    First non-empty key among the candidates, then the configured fallback.

    Raises:
        UpstreamError: no key anywhere
    """
    for key in (*candidates, settings.OPENAI_API_KEY):
        if isinstance(key, str) and key.strip():
            return key.strip()
    raise UpstreamError("No AI API key configured")


# -----------------------------------------------------------------------------
# Response parsing
# -----------------------------------------------------------------------------

def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` fences the model sometimes wraps around JSON."""
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_response(text: str) -> Dict[str, Any]:
    """
    Raises:
        UpstreamError: not a JSON object after fence stripping
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise UpstreamError("Could not parse AI response as JSON") from e
        try:
            parsed = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as inner:
            raise UpstreamError("Could not parse AI response as JSON") from inner
    if not isinstance(parsed, dict):
        raise UpstreamError("AI response was not a JSON object")
    return parsed


def split_json_and_text(text: str) -> Tuple[Optional[Any], str]:
    """
    Pull the first JSON value out of a mixed response.

    Looks for a fenced block first, then for the outermost {...} span.

    Returns:
        (parsed JSON or None, remaining narrative text). When nothing parses
        the whole input comes back as the narrative.
    """
    text = text or ""
    match = _FENCED_BLOCK_RE.search(text)
    if match:
        try:
            parsed = json.loads(match.group(1).strip())
            remainder = (text[:match.start()] + text[match.end():]).strip()
            return parsed, remainder
        except json.JSONDecodeError:
            pass

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
            remainder = (text[:start] + text[end + 1:]).strip()
            return parsed, remainder
        except json.JSONDecodeError:
            pass

    return None, text.strip()


def require_text(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(f"{name} is required")
    return value.strip()
