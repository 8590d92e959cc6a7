"""Console interface for the budget tracker."""

from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from budget_core.aggregation import LimitStatus, sorted_expenses, summarize
from budget_core.exceptions import PersistenceError, ValidationError
from budget_core.models import ExpenseEntry
from budget_core.services import BudgetStore
from budget_core.storage import JSONFileStorage, default_data_dir

STATUS_LABELS = {
    LimitStatus.NO_LIMIT: "-",
    LimitStatus.OK: "ok",
    LimitStatus.NEAR: "NEAR",
    LimitStatus.OVER: "OVER",
}


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError("Amount must be a finite number")
    return value


def _load_store(data_dir: Path) -> BudgetStore:
    store = BudgetStore(JSONFileStorage(data_dir))
    result = store.load()
    if result.recovered:
        print("Stored budget data was unreadable; starting a fresh budget.", file=sys.stderr)
    if result.rolled_over:
        print(f"A new month has started; budget reset for {result.record.period}.")
    return store


def _format_expense(expense: ExpenseEntry) -> str:
    note = expense.note or "-"
    return f"[{expense.id}] {expense.date} {expense.category:<20} {expense.amount:>10.2f}  {note}"


def _warning_line(category: str, status: LimitStatus) -> Optional[str]:
    if status is LimitStatus.OVER:
        return f"Warning: this expense puts '{category}' over its limit."
    if status is LimitStatus.NEAR:
        return f"Warning: '{category}' is within 10% of its limit."
    return None


def handle_income(args: argparse.Namespace, store: BudgetStore) -> None:
    record = store.add_income(args.amount)
    print(f"Income added. Total income for {record.period}: {record.income:.2f}")


def handle_expense(args: argparse.Namespace, store: BudgetStore) -> None:
    if args.command == "add":
        added = store.add_expense(args.category, args.amount, args.note)
        warning = _warning_line(added.entry.category, added.warning)
        if warning:
            print(warning, file=sys.stderr)
        print("Expense added:\n" + _format_expense(added.entry))
    elif args.command == "list":
        expenses = sorted_expenses(store.record, category=args.category)
        if not expenses:
            print("No expenses found.")
            return
        total = sum((expense.amount for expense in expenses), Decimal("0.00"))
        print(f"Found {len(expenses)} expenses (total {total:.2f}):")
        for expense in expenses:
            print(_format_expense(expense))
    elif args.command == "delete":
        before = len(store.record.expenses)
        record = store.delete_expense(args.id)
        if len(record.expenses) == before:
            print(f"Expense {args.id} not found; nothing deleted.")
        else:
            print(f"Expense {args.id} deleted.")


def handle_limit(args: argparse.Namespace, store: BudgetStore) -> None:
    if args.command == "set":
        record = store.set_limit(args.category, args.amount)
        name = args.category.strip()
        print(f"Limit for '{name}' set to {record.limits[name]:.2f}.")
    elif args.command == "remove":
        store.remove_limit(args.category)
        print(f"Limit for '{args.category.strip()}' removed.")


def handle_summary(args: argparse.Namespace, store: BudgetStore) -> None:
    summary = summarize(store.record)
    print(f"Budget for {summary.period}")
    print(f"  Income:    {summary.income:>12.2f}")
    print(f"  Spent:     {summary.total_expenses:>12.2f}")
    print(f"  Remaining: {summary.remaining:>12.2f}")
    if not summary.categories:
        return
    print()
    print(f"  {'Category':<20} {'Spent':>10} {'Limit':>10} {'Used':>6}  Status")
    for row in summary.categories:
        limit = f"{row.limit:.2f}" if row.limit is not None else "-"
        print(
            f"  {row.category:<20} {row.spent:>10.2f} {limit:>10} "
            f"{row.percent:>5.0f}%  {STATUS_LABELS[row.status]}"
        )


def handle_reset(args: argparse.Namespace, store: BudgetStore) -> None:
    if not args.yes:
        raise ValidationError("Reset clears income, expenses and limits; pass --yes to confirm")
    record = store.reset_all()
    print(f"Budget for {record.period} cleared.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Monthly Budget Tracker CLI")
    parser.add_argument(
        "--data-dir",
        default=default_data_dir(),
        type=Path,
        help="Directory to store JSON data (default: $BUDGET_TRACKER_DATA_DIR or ./data)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    income_parser = subparsers.add_parser("income", help="Record income")
    income_sub = income_parser.add_subparsers(dest="command", required=True)
    income_add = income_sub.add_parser("add", help="Add income for this month")
    income_add.add_argument("amount", type=_parse_amount)

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Add a new expense")
    expense_add.add_argument("category")
    expense_add.add_argument("amount", type=_parse_amount)
    expense_add.add_argument("--note", default="")

    expense_list = expense_sub.add_parser("list", help="List this month's expenses")
    expense_list.add_argument("--category")

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id")

    limit_parser = subparsers.add_parser("limit", help="Manage category limits")
    limit_sub = limit_parser.add_subparsers(dest="command", required=True)

    limit_set = limit_sub.add_parser("set", help="Set or replace a category limit")
    limit_set.add_argument("category")
    limit_set.add_argument("amount", type=_parse_amount)

    limit_remove = limit_sub.add_parser("remove", help="Remove a category limit")
    limit_remove.add_argument("category")

    subparsers.add_parser("summary", help="Show income, spending and limits")

    reset_parser = subparsers.add_parser("reset", help="Clear this month's budget")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")

    return parser


HANDLERS = {
    "income": handle_income,
    "expense": handle_expense,
    "limit": handle_limit,
    "summary": handle_summary,
    "reset": handle_reset,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        store = _load_store(args.data_dir)
        HANDLERS[args.entity](args, store)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
