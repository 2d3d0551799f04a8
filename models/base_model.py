#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the session auth API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps, stored as naive UTC

Notes:
- SQLite drops tz info on DateTime columns, so every timestamp written by this
  package goes through utcnow() and stays naive UTC on all backends.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_timestamp(ts: int | float) -> datetime:
    """Convert a unix timestamp (e.g. a JWT exp claim) to naive UTC."""
    return datetime.fromtimestamp(ts, timezone.utc).replace(tzinfo=None)


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_at, updated_at
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        created_at is filled eagerly so callers can derive expiries from it
        before the row is flushed.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()
        if getattr(self, "created_at", None) is None:
            self.created_at = utcnow()
