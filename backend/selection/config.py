from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_STORAGE_PATH = Path(__file__).resolve().parents[2] / "data" / "state" / "blocks.duckdb"
_OFF_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class StorageSettings:
    """Durable storage for session preferences, read from `BLOCKS_STORAGE*`."""

    enabled: bool = True
    path: Path = DEFAULT_STORAGE_PATH

    @classmethod
    def from_env(cls) -> "StorageSettings":
        flag = os.getenv("BLOCKS_STORAGE", "").strip().lower()
        raw_path = os.getenv("BLOCKS_STORAGE_PATH", "").strip()
        return cls(
            enabled=flag not in _OFF_VALUES,
            path=Path(raw_path) if raw_path else DEFAULT_STORAGE_PATH,
        )
