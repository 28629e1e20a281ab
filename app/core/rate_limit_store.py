from __future__ import annotations

import os
import sqlite3
import threading
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitEntry:
    count: int
    window_reset_at: float

    def expired(self, now: float) -> bool:
        return now >= self.window_reset_at


class RateLimitStore(Protocol):
    """Fixed-window counters keyed by client address.

    ``increment`` must be atomic per key: it either opens a fresh window with
    ``count=1`` or bumps the count of the live one, and returns the new entry.
    """

    def get(self, key: str) -> RateLimitEntry | None: ...

    def increment(self, key: str, now: float, window_seconds: float) -> RateLimitEntry: ...

    def sweep(self, now: float) -> int: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class MemoryRateLimitStore:
    """Process-local store. Counts are lost on restart."""

    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> RateLimitEntry | None:
        with self._lock:
            return self._entries.get(key)

    def increment(self, key: str, now: float, window_seconds: float) -> RateLimitEntry:
        with self._lock:
            current = self._entries.get(key)
            if current is None or current.expired(now):
                entry = RateLimitEntry(count=1, window_reset_at=now + window_seconds)
            else:
                entry = RateLimitEntry(count=current.count + 1, window_reset_at=current.window_reset_at)
            self._entries[key] = entry
            return entry

    def sweep(self, now: float) -> int:
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SqliteRateLimitStore:
    """Store shared by every worker process on one host."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rate_limit_windows (
                    client_key TEXT PRIMARY KEY,
                    count INTEGER NOT NULL,
                    window_reset_at REAL NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_rate_limit_windows_reset
                ON rate_limit_windows (window_reset_at);
                """
            )
            self._conn = conn
            return conn

    def get(self, key: str) -> RateLimitEntry | None:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute(
                "SELECT count, window_reset_at FROM rate_limit_windows WHERE client_key = ?",
                (key,),
            ).fetchone()
        if not row:
            return None
        return RateLimitEntry(count=int(row[0]), window_reset_at=float(row[1]))

    def increment(self, key: str, now: float, window_seconds: float) -> RateLimitEntry:
        conn = self._get_connection()
        with self._lock:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                row = cursor.execute(
                    "SELECT count, window_reset_at FROM rate_limit_windows WHERE client_key = ?",
                    (key,),
                ).fetchone()
                if row is None or now >= float(row[1]):
                    entry = RateLimitEntry(count=1, window_reset_at=now + window_seconds)
                else:
                    entry = RateLimitEntry(count=int(row[0]) + 1, window_reset_at=float(row[1]))
                cursor.execute(
                    """
                    INSERT INTO rate_limit_windows (client_key, count, window_reset_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(client_key) DO UPDATE SET
                        count = excluded.count,
                        window_reset_at = excluded.window_reset_at
                    """,
                    (key, entry.count, entry.window_reset_at),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return entry

    def sweep(self, now: float) -> int:
        conn = self._get_connection()
        with self._lock:
            cursor = conn.execute("DELETE FROM rate_limit_windows WHERE window_reset_at <= ?", (now,))
            conn.commit()
            return cursor.rowcount

    def clear(self) -> None:
        conn = self._get_connection()
        with self._lock:
            conn.execute("DELETE FROM rate_limit_windows")
            conn.commit()

    def __len__(self) -> int:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute("SELECT COUNT(1) FROM rate_limit_windows").fetchone()
        return int(row[0] or 0)
