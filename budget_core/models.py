"""Data models for the budget tracker domain."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Optional, Set, Tuple

import simplejson

from .exceptions import MalformedStoredData, ValidationError
from .periods import is_valid_date, is_valid_period
from .validators import parse_amount, parse_limit, validate_category, validate_note

__all__ = ["BudgetRecord", "ExpenseEntry", "REQUIRED_FIELDS", "decode_record", "encode_record", "fresh_record"]

REQUIRED_FIELDS = ("period", "income", "expenses", "limits")


@dataclass(frozen=True)
class ExpenseEntry:
    id: str
    date: str
    category: str
    amount: Decimal
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense; amounts stay Decimal so encoding is exact."""
        return {
            "id": self.id,
            "date": self.date,
            "category": self.category,
            "amount": self.amount,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExpenseEntry":
        """Hydrate an entry from stored data, validating every field."""
        if not isinstance(data, dict):
            raise MalformedStoredData("expense entries must be objects")
        entry_id = data.get("id")
        if not isinstance(entry_id, str) or not entry_id:
            raise MalformedStoredData("expense id must be a non-empty string")
        if not is_valid_date(data.get("date")):
            raise MalformedStoredData(f"expense {entry_id} has an invalid date")
        try:
            return cls(
                id=entry_id,
                date=data["date"],
                category=validate_category(data.get("category")),
                amount=parse_amount(data.get("amount")),
                note=validate_note(data.get("note")),
            )
        except ValidationError as exc:
            raise MalformedStoredData(f"expense {entry_id}: {exc}") from exc


@dataclass(frozen=True)
class BudgetRecord:
    """One month of income, expenses and category limits.

    Records are never mutated; the store swaps in a new record for every change.
    """

    period: str
    income: Decimal = Decimal("0")
    expenses: Tuple[ExpenseEntry, ...] = ()
    limits: Dict[str, Decimal] = field(default_factory=dict)

    def with_income(self, amount: Decimal) -> "BudgetRecord":
        return replace(self, income=self.income + amount)

    def with_expense(self, entry: ExpenseEntry) -> "BudgetRecord":
        return replace(self, expenses=self.expenses + (entry,))

    def without_expense(self, expense_id: str) -> "BudgetRecord":
        remaining = tuple(entry for entry in self.expenses if entry.id != expense_id)
        return replace(self, expenses=remaining)

    def with_limit(self, category: str, limit: Decimal) -> "BudgetRecord":
        return replace(self, limits={**self.limits, category: limit})

    def without_limit(self, category: str) -> "BudgetRecord":
        limits = {name: value for name, value in self.limits.items() if name != category}
        return replace(self, limits=limits)

    def find_expense(self, expense_id: str) -> Optional[ExpenseEntry]:
        for entry in self.expenses:
            if entry.id == expense_id:
                return entry
        return None

    def expense_ids(self) -> Set[str]:
        return {entry.id for entry in self.expenses}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "income": self.income,
            "expenses": [entry.to_dict() for entry in self.expenses],
            "limits": dict(self.limits),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BudgetRecord":
        """Coerce untyped stored data into a record or raise MalformedStoredData."""
        if not isinstance(data, dict):
            raise MalformedStoredData("stored budget must be an object")
        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise MalformedStoredData(f"stored budget is missing {', '.join(missing)}")
        period = data["period"]
        if not is_valid_period(period):
            raise MalformedStoredData(f"invalid period {period!r}")

        try:
            income = parse_limit(data["income"], "income")
        except ValidationError as exc:
            raise MalformedStoredData(str(exc)) from exc

        raw_expenses = data["expenses"]
        if not isinstance(raw_expenses, list):
            raise MalformedStoredData("expenses must be a list")
        expenses = tuple(ExpenseEntry.from_dict(item) for item in raw_expenses)
        if len({entry.id for entry in expenses}) != len(expenses):
            raise MalformedStoredData("expense ids must be unique")

        raw_limits = data["limits"]
        if not isinstance(raw_limits, dict):
            raise MalformedStoredData("limits must be an object")
        limits: Dict[str, Decimal] = {}
        try:
            for raw_name, raw_value in raw_limits.items():
                name = validate_category(raw_name)
                if name in limits:
                    raise MalformedStoredData(f"duplicate limit for category {name!r}")
                limits[name] = parse_limit(raw_value)
        except ValidationError as exc:
            raise MalformedStoredData(f"limits: {exc}") from exc

        return cls(period=period, income=income, expenses=expenses, limits=limits)


def fresh_record(period: str) -> BudgetRecord:
    return BudgetRecord(period=period)


def encode_record(record: BudgetRecord) -> str:
    # Decimals are written as exact JSON numbers; sorted keys keep the text stable.
    return simplejson.dumps(record.to_dict(), use_decimal=True, sort_keys=True)


def decode_record(text: str) -> BudgetRecord:
    try:
        payload = simplejson.loads(text, use_decimal=True)
    except (TypeError, ValueError) as exc:
        raise MalformedStoredData("stored budget is not valid JSON") from exc
    return BudgetRecord.from_dict(payload)
