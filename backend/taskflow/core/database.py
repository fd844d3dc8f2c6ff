"""
database.py — Record Store Connections

Purpose:
- Create the Supabase client every request handler reads and writes through.
- Hand out one client per process, built from the injected Settings
  (see `taskflow.api.deps.get_db`).
- Create the five TaskFlow tables from the SQLAlchemy metadata for first-time
  setup (`scripts/init_schema.py`).

Key Characteristics:
- Request handlers never touch SQLAlchemy; all row access goes through the
  PostgREST query builder of the Supabase client.
- The SQLAlchemy engine is only built for schema creation and uses the
  psycopg (v3) driver.

This module does NOT:
- Define tables (see taskflow/models/*).
- Perform any queries or business logic.
"""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from supabase import Client, create_client

from taskflow.core.config import Settings
from taskflow.core.logging import get_logger
from taskflow.models import Base

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Supabase client
# -----------------------------------------------------------------------------

@lru_cache
def _cached_client(url: str, key: str) -> Client:
    logger.info("Creating Supabase client for %s", url)
    return create_client(url, key)


def create_supabase_client(settings: Settings) -> Client:
    """
    Return the process-wide Supabase client for these settings.

    Raises:
        RuntimeError: If SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are not set
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError(
            "Database is not configured. Please set SUPABASE_URL and "
            "SUPABASE_SERVICE_ROLE_KEY environment variables."
        )
    return _cached_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


# -----------------------------------------------------------------------------
# Schema bootstrap (SQLAlchemy)
# -----------------------------------------------------------------------------

def normalize_db_url(db_url: str) -> str:
    """
    Use psycopg (v3) driver - SQLAlchemy 2.0+ supports psycopg3.
    Convert postgresql:// to postgresql+psycopg:// if not already specified.
    """
    db_url = db_url.strip()
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    if db_url.startswith("postgresql://") and "+" not in db_url.split("://")[0]:
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return db_url


def create_schema_engine(settings: Settings) -> Engine:
    """
    Raises:
        RuntimeError: If SUPABASE_DB_URL is empty
    """
    if not settings.SUPABASE_DB_URL or not settings.SUPABASE_DB_URL.strip():
        raise RuntimeError("SUPABASE_DB_URL is required to create the schema.")
    return create_engine(
        normalize_db_url(settings.SUPABASE_DB_URL),
        pool_pre_ping=True,  # Ensures connections are valid before use
    )


def init_schema(engine: Engine) -> list[str]:
    """
    Create any missing TaskFlow tables. Existing tables are left untouched.

    Returns:
        Names of the tables known to the metadata.
    """
    Base.metadata.create_all(bind=engine)
    names = sorted(Base.metadata.tables)
    logger.info("Schema ensured for tables: %s", ", ".join(names))
    return names
