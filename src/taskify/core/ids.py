"""Canonical ID and timestamp factories.

All modules import from here instead of defining local _uuid()/_now() copies.

Timestamp Rule
--------------
All timestamps are ``datetime`` with ``tzinfo=timezone.utc``, never naive.
A naive datetime handed in by a caller is interpreted as UTC.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone


def new_id() -> str:
    """Generate a new UUID v4 string.  Use for task, user and event IDs."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | date) -> datetime:
    """Coerce *value* to an aware UTC datetime.

    A plain ``date`` becomes midnight UTC of that day.
    """
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
