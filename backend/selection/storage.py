from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import duckdb

from selection.config import StorageSettings
from selection.sql import CREATE_KV_TABLE_SQL, GET_VALUE_SQL, UPSERT_VALUE_SQL


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


@dataclass
class MemoryStorage:
    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


@dataclass
class DuckDBStorage:
    """
    Durable key-value storage backed by a single DuckDB table.

    Survives process restarts, which is what "reload" means on the server side.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @classmethod
    def open(cls, path: Path) -> "DuckDBStorage":
        path.parent.mkdir(parents=True, exist_ok=True)
        storage = cls(path=path, conn=duckdb.connect(str(path)))
        storage.ensure_schema()
        return storage

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_KV_TABLE_SQL)

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self.conn.execute(GET_VALUE_SQL, [key]).fetchone()
        if row is None or row[0] is None:
            return None
        return str(row[0])

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self.conn.execute(UPSERT_VALUE_SQL, [key, value])

    def close(self) -> None:
        with self._lock:
            self.conn.close()


def open_storage(settings: StorageSettings | None = None) -> KeyValueStorage:
    settings = settings or StorageSettings.from_env()
    if not settings.enabled:
        return MemoryStorage()
    return DuckDBStorage.open(settings.path)
