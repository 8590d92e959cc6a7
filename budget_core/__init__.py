"""Core business logic package for the budget tracker."""

from .aggregation import (
    BudgetSummary,
    CategorySummary,
    LimitStatus,
    all_categories,
    category_progress_percent,
    category_rows,
    limit_status,
    projected_limit_status,
    remaining_balance,
    sorted_expenses,
    spent_by_category,
    summarize,
    total_expenses,
)
from .exceptions import (
    InvalidAmount,
    InvalidCategory,
    MalformedStoredData,
    PersistenceError,
    ValidationError,
)
from .models import BudgetRecord, ExpenseEntry
from .services import STORAGE_KEY, BudgetStore, ExpenseAdded, LoadResult
from .storage import JSONFileStorage, MemoryStorage

__all__ = [
    "BudgetRecord",
    "ExpenseEntry",
    "BudgetStore",
    "ExpenseAdded",
    "LoadResult",
    "STORAGE_KEY",
    "JSONFileStorage",
    "MemoryStorage",
    "BudgetSummary",
    "CategorySummary",
    "LimitStatus",
    "all_categories",
    "category_progress_percent",
    "category_rows",
    "limit_status",
    "projected_limit_status",
    "remaining_balance",
    "sorted_expenses",
    "spent_by_category",
    "summarize",
    "total_expenses",
    "InvalidAmount",
    "InvalidCategory",
    "MalformedStoredData",
    "PersistenceError",
    "ValidationError",
]
