from __future__ import annotations

CREATE_KV_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS kv (
  kv_key TEXT PRIMARY KEY,
  kv_value TEXT
);
"""

GET_VALUE_SQL = "SELECT kv_value FROM kv WHERE kv_key = ?"

UPSERT_VALUE_SQL = "INSERT OR REPLACE INTO kv (kv_key, kv_value) VALUES (?, ?)"
