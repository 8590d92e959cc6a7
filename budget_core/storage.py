"""Persistence adapters for the budget tracker core services.

Adapters are opaque key-value stores: ``get`` returns the stored text for a
key (or ``None``) and ``set`` replaces it, raising ``PersistenceError`` on
failure.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Optional, Protocol

from .exceptions import PersistenceError

DATA_DIR_ENV = "BUDGET_TRACKER_DATA_DIR"
KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def default_data_dir() -> Path:
    return Path(os.getenv(DATA_DIR_ENV, "data"))


class StorageAdapter(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class JSONFileStorage:
    """File-based key-value storage with crash-safe writes, one file per key."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to create data directory {self._base_path}") from exc

    def _path_for(self, key: str) -> Path:
        if not KEY_PATTERN.fullmatch(key):
            raise PersistenceError(f"Invalid storage key {key!r}")
        return self._base_path / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc
        # Undecodable bytes are corrupted content for the decoder to reject.
        return raw.decode("utf-8", errors="replace")

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path


class MemoryStorage:
    """Dict-backed storage for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data
