"""Framework-agnostic budget state store."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .aggregation import LimitStatus, projected_limit_status
from .exceptions import MalformedStoredData, PersistenceError, ValidationError
from .ids import new_id
from .models import BudgetRecord, ExpenseEntry, decode_record, encode_record, fresh_record
from .periods import current_period, today, utcnow
from .storage import StorageAdapter
from .validators import parse_amount, parse_limit, validate_category, validate_note

logger = logging.getLogger(__name__)

STORAGE_KEY = "budget-tracker"
MAX_ID_ATTEMPTS = 10


@dataclass(frozen=True)
class LoadResult:
    record: BudgetRecord
    rolled_over: bool = False
    recovered: bool = False


@dataclass(frozen=True)
class ExpenseAdded:
    entry: ExpenseEntry
    warning: LimitStatus
    record: BudgetRecord


class BudgetStore:
    """Owns the active month's budget record and mediates persistence.

    Every mutation validates its input, builds a new record, persists it and
    only then makes it the current record. A failed write therefore leaves the
    in-memory record equal to the last successfully persisted one.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_id,
        key: str = STORAGE_KEY,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._id_factory = id_factory
        self._key = key
        self._lock = threading.RLock()
        self._record: Optional[BudgetRecord] = None
        self._rollover_pending = False

    # Public API -----------------------------------------------------------
    def load(self) -> LoadResult:
        """Read the stored record, replacing it when malformed or stale.

        ``rolled_over`` is reported once; later calls return False until the
        month changes again.
        """
        with self._lock:
            recovered = self._load()
            return LoadResult(
                record=self._record,  # type: ignore[arg-type]
                rolled_over=self.pop_rollover_notice(),
                recovered=recovered,
            )

    @property
    def record(self) -> BudgetRecord:
        """The active record; reading it after the month changed rolls it over."""
        with self._lock:
            if self._record is None:
                self._load()
            current = self._record
            period = current_period(self._clock())
            if current.period != period:  # type: ignore[union-attr]
                current = self._commit(fresh_record(period), "rollover to %s", period)
            return current  # type: ignore[return-value]

    def snapshot(self) -> BudgetRecord:
        return self.record

    def pop_rollover_notice(self) -> bool:
        """Return True once after a rollover, then False until the next one."""
        with self._lock:
            pending = self._rollover_pending
            self._rollover_pending = False
            return pending

    def add_income(self, amount: object) -> BudgetRecord:
        with self._lock:
            value = parse_amount(amount, "amount")
            current = self._active_record()
            return self._commit(current.with_income(value), "income +%s", value)

    def add_expense(self, category: object, amount: object, note: object = "") -> ExpenseAdded:
        """Record an expense and report the limit status it was added under.

        The returned warning is computed against the record before insertion,
        projected forward by this expense's amount.
        """
        with self._lock:
            name = validate_category(category)
            value = parse_amount(amount, "amount")
            text = validate_note(note)
            current = self._active_record()
            warning = projected_limit_status(current, name, value)
            entry = ExpenseEntry(
                id=self._unique_id(current),
                date=today(self._clock()),
                category=name,
                amount=value,
                note=text,
            )
            record = self._commit(current.with_expense(entry), "expense %s %s %s", entry.id, name, value)
            return ExpenseAdded(entry=entry, warning=warning, record=record)

    def check_expense(self, category: object, amount: object) -> LimitStatus:
        """Classify a prospective expense without recording it."""
        with self._lock:
            name = validate_category(category)
            value = parse_amount(amount, "amount")
            return projected_limit_status(self._active_record(), name, value)

    def set_limit(self, category: object, limit: object) -> BudgetRecord:
        with self._lock:
            name = validate_category(category)
            value = parse_limit(limit, "limit")
            current = self._active_record()
            return self._commit(current.with_limit(name, value), "limit %s=%s", name, value)

    def remove_limit(self, category: object) -> BudgetRecord:
        with self._lock:
            name = validate_category(category)
            current = self._active_record()
            if name not in current.limits:
                return current
            return self._commit(current.without_limit(name), "limit %s removed", name)

    def delete_expense(self, expense_id: str) -> BudgetRecord:
        with self._lock:
            current = self._active_record()
            if current.find_expense(expense_id) is None:
                return current
            return self._commit(current.without_expense(expense_id), "expense %s deleted", expense_id)

    def reset_all(self) -> BudgetRecord:
        with self._lock:
            record = fresh_record(current_period(self._clock()))
            self._persist(record)
            self._record = record
            logger.info("Budget reset for %s", record.period)
            return record

    # Internal helpers -----------------------------------------------------
    def _load(self) -> bool:
        """Hydrate the in-memory record; returns True when stored data was discarded."""
        period = current_period(self._clock())
        recovered = False
        raw = self._storage.get(self._key)
        if raw is None:
            record = fresh_record(period)
        else:
            try:
                record = decode_record(raw)
            except MalformedStoredData as exc:
                logger.warning("Discarding malformed budget data under %r: %s", self._key, exc)
                record = fresh_record(period)
                recovered = True

        if record.period != period:
            logger.info("Rolling budget over from %s to %s", record.period, period)
            record = fresh_record(period)
            self._persist(record)
            self._rollover_pending = True

        self._record = record
        return recovered

    def _active_record(self) -> BudgetRecord:
        # Reading the record first commits a pending month rollover.
        return self.record

    def _commit(self, record: BudgetRecord, message: str, *args: object) -> BudgetRecord:
        previous = self._record
        self._persist(record)
        self._record = record
        if previous is not None and previous.period != record.period:
            logger.info("Month changed mid-session; rolled budget over from %s to %s", previous.period, record.period)
            self._rollover_pending = True
        logger.debug("Committed " + message, *args)
        return record

    def _persist(self, record: BudgetRecord) -> None:
        try:
            self._storage.set(self._key, encode_record(record))
        except PersistenceError as exc:
            logger.error("Failed to persist budget for %s: %s", record.period, exc)
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.error("Unexpected error while saving budget: %s", exc)
            raise PersistenceError("Unexpected error while saving budget") from exc

    def _unique_id(self, record: BudgetRecord) -> str:
        taken = record.expense_ids()
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in taken:
                return candidate
        raise ValidationError("Unable to generate a unique expense id")
