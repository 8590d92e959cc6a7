"""Validation helpers shared across budget tracker services."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .exceptions import InvalidAmount, InvalidCategory, ValidationError


def _to_decimal(raw: object, field: str) -> Decimal:
    # bool is an int subclass; True must not be accepted as 1.
    if isinstance(raw, bool) or raw is None:
        raise InvalidAmount(f"{field} must be a numeric value")
    if isinstance(raw, Decimal):
        amount = raw
    else:
        try:
            amount = Decimal(str(raw).strip())
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidAmount(f"{field} must be a numeric value") from exc
    if not amount.is_finite():
        raise InvalidAmount(f"{field} must be a finite number")
    return amount


def parse_amount(raw: object, field: str = "amount") -> Decimal:
    """Convert raw input to a positive Decimal, kept exact; rounding is for display only."""
    amount = _to_decimal(raw, field)
    if amount <= 0:
        raise InvalidAmount(f"{field} must be greater than zero")
    return amount


def parse_limit(raw: object, field: str = "limit") -> Decimal:
    """Convert raw input to a non-negative Decimal; zero means nothing may be spent."""
    amount = _to_decimal(raw, field)
    if amount < 0:
        raise InvalidAmount(f"{field} must not be negative")
    # Normalise -0 so it serialises as a plain zero.
    return abs(amount)


def validate_category(value: object, field: str = "category") -> str:
    if not isinstance(value, str):
        raise InvalidCategory(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise InvalidCategory(f"{field} cannot be empty")
    return trimmed


def validate_note(value: object, field: str = "note") -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()
