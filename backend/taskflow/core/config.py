"""
config.py — Centralized Application Configuration Loader

Purpose:
- Define a single source of truth for application settings.
- Load and validate environment variables from `.env` or OS environment.
- Hand out one Settings object per process via `get_settings()` so handlers
  receive their configuration explicitly (FastAPI dependency) instead of
  importing a module-level global.

Settings groups:
- Supabase (record store) connection
- OpenAI (completion API) fallback key and model
- Session / PIN hashing policy
- Logging

This module does NOT:
- Execute any DB connections.
- Make external API calls.
- Modify runtime settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/taskflow/core/config.py
# .env should be at: backend/.env
_CONFIG_DIR = Path(__file__).parent
_BACKEND_DIR = _CONFIG_DIR.parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    _ENV_FILE_PATH = str(_ENV_FILE.resolve())
else:
    # Fallback: pydantic looks in CWD
    _ENV_FILE_PATH = ".env"


class Settings(BaseSettings):
    """
    Process-wide settings for the TaskFlow backend.
    """
    # Supabase - record store for users, sessions, tasks, history, settings
    SUPABASE_URL: str = Field(
        "",
        description="Supabase project URL",
    )
    SUPABASE_SERVICE_ROLE_KEY: str = Field(
        "",
        description="Supabase service role key (backend only, never exposed to the browser)",
    )
    SUPABASE_DB_URL: str = Field(
        "",
        description="PostgreSQL connection URL, only used by scripts/init_schema.py",
    )

    # OpenAI - fallback key when the user has not stored their own
    OPENAI_API_KEY_PATH: str = Field(
        "",
        description="Path to file containing OpenAI API key (alternative to OPENAI_API_KEY)",
    )
    OPENAI_API_KEY: str = Field(
        "",
        description="Fallback OpenAI API key for categorize/briefing",
    )
    OPENAI_BASE_URL: str = Field(
        "",
        description="Optional override for the chat-completion endpoint",
    )
    OPENAI_MODEL: str = Field(
        "gpt-4o-mini",
        description="Chat-completion model used by the AI assist handlers",
    )

    # Sessions & credentials
    SESSION_TTL_DAYS: int = Field(
        30,
        description="Lifetime of a session token issued at login",
    )
    PIN_HASH_ROUNDS: int = Field(
        100_000,
        description="PBKDF2 iteration count for PIN hashing",
    )
    BOOTSTRAP_USERNAME: str = Field(
        "owner",
        description="Username given to the first user when none is supplied at first-run PIN setup",
    )

    LOG_LEVEL: str = Field(
        "INFO",
        description="Root log level",
    )

    @field_validator("OPENAI_API_KEY", mode="before")
    @classmethod
    def strip_api_key(cls, v: Any) -> str:
        """Strip whitespace from API key."""
        if isinstance(v, str):
            return v.strip()
        return v or ""

    @model_validator(mode="after")
    def load_api_key_from_file(self) -> "Settings":
        """Load API key from file if OPENAI_API_KEY_PATH is provided."""
        if self.OPENAI_API_KEY_PATH and not self.OPENAI_API_KEY:
            key_path = Path(self.OPENAI_API_KEY_PATH).expanduser()
            if not key_path.exists():
                raise ValueError(f"API key file not found: {key_path}")
            with key_path.open("r", encoding="utf-8") as f:
                self.OPENAI_API_KEY = f.read().strip()
        return self

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Build the Settings object once per process.

    Used as a FastAPI dependency; tests override it through
    `app.dependency_overrides[get_settings]`.
    """
    return Settings()
