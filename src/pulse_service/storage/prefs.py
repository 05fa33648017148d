# src/pulse_service/storage/prefs.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class PrefsStore:
    """
    Scoped SQLite key/value store (shared-preferences style).

    Values are JSON-encoded; only strings and string lists are exposed.
    Keys are isolated per scope, so two stores with different scopes can share a file.

    Thread-safety:
    - each method opens its own SQLite connection
    - append_to_list runs read-modify-write inside one IMMEDIATE transaction
    """

    def __init__(self, db_path: str | Path = "prefs.sqlite3", *, scope: str = "flutter") -> None:
        if not scope or not scope.strip():
            raise ValueError("scope is required")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._scope = scope.strip()
        self._ensure_schema()
        logger.info("PrefsStore ready db=%s scope=%s", self._db_path, self._scope)

    @property
    def scope(self) -> str:
        return self._scope

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    def reload(self) -> None:
        """Every read goes to disk; nothing is cached, so there is nothing to reload."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS prefs (
                    scope TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL,
                    PRIMARY KEY (scope, key)
                )
                """
            )
        finally:
            conn.close()

    @staticmethod
    def _decode(raw: str | None) -> Any:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except Exception:
            logger.warning("Corrupt prefs value ignored: %r", raw[:80])
            return None

    def _read(self, conn: sqlite3.Connection, key: str) -> Any:
        row = conn.execute(
            "SELECT value FROM prefs WHERE scope = ? AND key = ?",
            (self._scope, key),
        ).fetchone()
        return self._decode(row["value"]) if row else None

    def _write(self, conn: sqlite3.Connection, key: str, value: Any) -> None:
        conn.execute(
            """
            INSERT INTO prefs(scope, key, value, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(scope, key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (self._scope, key, json.dumps(value, ensure_ascii=False), time.time()),
        )

    # ---- public API ----

    def get_string(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            val = self._read(conn, key)
        finally:
            conn.close()
        return val if isinstance(val, str) else None

    def set_string(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"value for {key!r} must be str")
        conn = self._get_conn()
        try:
            self._write(conn, key, value)
        finally:
            conn.close()

    def get_string_list(self, key: str) -> list[str] | None:
        conn = self._get_conn()
        try:
            val = self._read(conn, key)
        finally:
            conn.close()
        if not isinstance(val, list):
            return None
        return [str(v) for v in val]

    def set_string_list(self, key: str, values: list[str]) -> None:
        conn = self._get_conn()
        try:
            self._write(conn, key, [str(v) for v in values])
        finally:
            conn.close()

    def append_to_list(self, key: str, value: str) -> int:
        """Append one entry to a string list (created if missing). Returns the new length."""
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                current = self._read(conn, key)
                items = [str(v) for v in current] if isinstance(current, list) else []
                items.append(str(value))
                self._write(conn, key, items)
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise
            return len(items)
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM prefs WHERE scope = ? AND key = ?", (self._scope, key))
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT key FROM prefs WHERE scope = ? ORDER BY key ASC", (self._scope,)
            ).fetchall()
            return [str(r["key"]) for r in rows]
        finally:
            conn.close()
