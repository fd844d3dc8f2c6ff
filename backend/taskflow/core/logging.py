"""
logging.py — Logging setup for the TaskFlow backend.

One format for every module: `timestamp | level | module | message`, written
to stdout where uvicorn and the hosting platform collect it.

The Supabase and OpenAI SDKs log every HTTP exchange through httpx; those
loggers are held at WARNING unless the backend itself runs at DEBUG.

Never pass PINs, hashes, session tokens or API keys to a logger.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Transport-level loggers used by supabase-py, postgrest and openai.
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "openai", "postgrest")


def configure_logging(level: str = "INFO") -> None:
    """
    Set up root logging once, from `main.py` at import time.

    Unknown level names fall back to INFO.
    """
    root_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=root_level, format=LOG_FORMAT, stream=sys.stdout)
    logging.getLogger().setLevel(root_level)

    library_level = logging.DEBUG if root_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logging.getLogger(__name__).info("Logging initialized with level %s", logging.getLevelName(root_level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
