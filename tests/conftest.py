from datetime import datetime, timezone
from itertools import count

import pytest

from budget_core.exceptions import PersistenceError
from budget_core.services import BudgetStore
from budget_core.storage import MemoryStorage


class FakeClock:
    """Settable clock; tests move it across month boundaries."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FailingStorage(MemoryStorage):
    """Memory storage whose writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceError("disk full")
        super().set(key, value)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 2, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def ids():
    counter = count(1)
    return lambda: f"exp-{next(counter)}"


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def make_store(clock, ids):
    def factory(backend):
        return BudgetStore(backend, clock=clock, id_factory=ids)

    return factory


@pytest.fixture
def store(storage, make_store):
    budget_store = make_store(storage)
    budget_store.load()
    return budget_store
