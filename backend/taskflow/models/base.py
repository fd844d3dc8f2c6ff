"""
base.py — Shared declarative Base for the TaskFlow tables.

All five tables register on the same metadata so `init_schema()` can create
them in one pass.
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
