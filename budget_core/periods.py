"""Calendar period helpers.

A period is a calendar month keyed as ``YYYY-MM``. All computations use UTC so
that the period key and the dates stamped on new expenses always agree.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

__all__ = ["current_period", "is_valid_period", "is_valid_date", "needs_rollover", "today", "utcnow"]

PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return utcnow()
    if now.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def current_period(now: Optional[datetime] = None) -> str:
    """Return the ``YYYY-MM`` key for ``now`` (defaults to the system clock)."""
    return _as_utc(now).strftime("%Y-%m")


def today(now: Optional[datetime] = None) -> str:
    """Return the ``YYYY-MM-DD`` date for ``now`` in UTC."""
    return _as_utc(now).strftime("%Y-%m-%d")


def needs_rollover(stored_period: str, now: Optional[datetime] = None) -> bool:
    return stored_period != current_period(now)


def is_valid_period(value: object) -> bool:
    return isinstance(value, str) and PERIOD_PATTERN.fullmatch(value) is not None


def is_valid_date(value: object) -> bool:
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True
