"""Identifier generation for expense entries."""

from __future__ import annotations

import time
from uuid import uuid4

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def new_id() -> str:
    """Return a millisecond-timestamp prefix joined to a random hex suffix."""
    millis = time.time_ns() // 1_000_000
    return f"{_base36(millis)}-{uuid4().hex[:12]}"
