"""
errors.py — Domain Exceptions

Every failure a handler can report maps to one of these classes. Services
raise them; `taskflow.main` renders them as `{"error": message}` with the
class's HTTP status.
"""

from pydantic import ValidationError


class TaskFlowError(Exception):
    """Base class for errors surfaced to the caller."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(TaskFlowError):
    """Missing or malformed request field."""
    status_code = 400


class Unauthenticated(TaskFlowError):
    """No session token, or the token matches no session."""
    status_code = 401


class SessionExpired(Unauthenticated):
    """The token matched a session whose expiry has passed."""


class InvalidCredential(TaskFlowError):
    """Login failed. The message never says which half was wrong."""
    status_code = 401


class Forbidden(TaskFlowError):
    status_code = 403


class Conflict(TaskFlowError):
    status_code = 409


class UsernameConflict(Conflict):
    pass


class UpstreamError(TaskFlowError):
    """Database or completion API failure; the upstream message is passed through."""
    status_code = 500


def describe_validation_error(e: ValidationError) -> str:
    """First pydantic error as a one-line message."""
    first = e.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}" if location else message
