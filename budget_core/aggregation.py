"""Derived views over a budget record.

Every function here is pure: it reads only the record it is given and never
consults the clock, so identical snapshots always produce identical output.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .models import BudgetRecord, ExpenseEntry

__all__ = [
    "BudgetSummary",
    "CategorySummary",
    "LimitStatus",
    "NEAR_THRESHOLD",
    "all_categories",
    "category_progress_percent",
    "category_rows",
    "classify",
    "limit_status",
    "projected_limit_status",
    "remaining_balance",
    "sorted_expenses",
    "spent_by_category",
    "summarize",
    "total_expenses",
]

NEAR_THRESHOLD = Decimal("0.9")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class LimitStatus(str, Enum):
    """How close a category's spending is to its limit."""

    NO_LIMIT = "no_limit"
    OK = "ok"
    NEAR = "near"
    OVER = "over"

    @property
    def is_warning(self) -> bool:
        return self in (LimitStatus.NEAR, LimitStatus.OVER)


def spent_by_category(record: BudgetRecord) -> Dict[str, Decimal]:
    """Sum expense amounts per category; categories without expenses are absent."""
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for entry in record.expenses:
        totals[entry.category] += entry.amount
    return dict(totals)


def total_expenses(record: BudgetRecord) -> Decimal:
    return sum((entry.amount for entry in record.expenses), ZERO)


def remaining_balance(record: BudgetRecord) -> Decimal:
    """Income minus everything spent; negative once the month is overspent."""
    return record.income - total_expenses(record)


def all_categories(record: BudgetRecord) -> Set[str]:
    return set(record.limits) | set(spent_by_category(record))


def classify(limit: Optional[Decimal], spent: Decimal) -> LimitStatus:
    """Apply the 90%/100% thresholds to a spent amount.

    Spending exactly at the limit is still ``NEAR``; only going past it is ``OVER``.
    """
    if limit is None:
        return LimitStatus.NO_LIMIT
    if spent > limit:
        return LimitStatus.OVER
    if spent > limit * NEAR_THRESHOLD:
        return LimitStatus.NEAR
    return LimitStatus.OK


def _spent_in(record: BudgetRecord, category: str) -> Decimal:
    return sum((entry.amount for entry in record.expenses if entry.category == category), ZERO)


def limit_status(record: BudgetRecord, category: str) -> LimitStatus:
    return classify(record.limits.get(category), _spent_in(record, category))


def projected_limit_status(
    record: BudgetRecord, category: str, additional_amount: Decimal
) -> LimitStatus:
    """Classify the category as if ``additional_amount`` had already been spent."""
    spent = _spent_in(record, category) + Decimal(additional_amount)
    return classify(record.limits.get(category), spent)


def category_progress_percent(limit: Optional[Decimal], spent: Decimal) -> Decimal:
    """Share of the limit used, capped at 100.

    Spending with no limit (or against a zero limit) counts as fully used.
    """
    if limit is None or limit == 0:
        return HUNDRED if spent > 0 else ZERO
    return min(spent / limit * HUNDRED, HUNDRED)


def sorted_expenses(record: BudgetRecord, category: Optional[str] = None) -> List[ExpenseEntry]:
    """Return expenses newest date first; entries sharing a date keep insertion order."""
    entries = [
        entry for entry in record.expenses if category is None or entry.category == category
    ]
    # sorted() is stable even with reverse=True, which gives the insertion-order tiebreak.
    return sorted(entries, key=lambda entry: entry.date, reverse=True)


@dataclass(frozen=True)
class CategorySummary:
    category: str
    spent: Decimal
    limit: Optional[Decimal]
    status: LimitStatus
    percent: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "spent": self.spent,
            "limit": self.limit,
            "status": self.status.value,
            "percent": self.percent,
        }


@dataclass(frozen=True)
class BudgetSummary:
    period: str
    income: Decimal
    total_expenses: Decimal
    remaining: Decimal
    categories: List[CategorySummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "income": self.income,
            "total_expenses": self.total_expenses,
            "remaining": self.remaining,
            "categories": [row.to_dict() for row in self.categories],
        }


def category_rows(record: BudgetRecord) -> List[CategorySummary]:
    spent = spent_by_category(record)
    rows: List[CategorySummary] = []
    for category in sorted(all_categories(record)):
        limit = record.limits.get(category)
        amount = spent.get(category, ZERO)
        rows.append(
            CategorySummary(
                category=category,
                spent=amount,
                limit=limit,
                status=classify(limit, amount),
                percent=category_progress_percent(limit, amount),
            )
        )
    return rows


def summarize(record: BudgetRecord) -> BudgetSummary:
    """Collect every derived figure a presentation layer needs in one pass."""
    total = total_expenses(record)
    return BudgetSummary(
        period=record.period,
        income=record.income,
        total_expenses=total,
        remaining=record.income - total,
        categories=category_rows(record),
    )
