from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Optional, Tuple

import orjson


# ──────────────────────────────────────────────────────────────
# Connections
# ──────────────────────────────────────────────────────────────

def connect_sqlite(path: str) -> sqlite3.Connection:
    """Open the cache database, shared across request threads.

    File databases get their parent directory created and run in WAL mode;
    ":memory:" is opened as is.
    """
    in_memory = path == ":memory:"
    if not in_memory:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, check_same_thread=False)
    if not in_memory:
        conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


# ──────────────────────────────────────────────────────────────
# Schema
# ──────────────────────────────────────────────────────────────

def ensure_schema(conn: sqlite3.Connection) -> None:
    # One generic key/value table backs every cache-aside lookup
    # (geocode:*, social:*, ...).
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS cache (
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL,
            expires_at TEXT NOT NULL
        );
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_cache_expires_at ON cache(expires_at);")
    conn.commit()


# ──────────────────────────────────────────────────────────────
# Cache rows
# ──────────────────────────────────────────────────────────────

def put_cache_entry(
    conn: sqlite3.Connection,
    *,
    key: str,
    value: Any,
    expires_at: str,
) -> int:
    blob = orjson.dumps(value)
    conn.execute(
        """
        INSERT OR REPLACE INTO cache (key, value, expires_at)
        VALUES (?, ?, ?);
        """,
        (key, blob, expires_at),
    )
    conn.commit()
    return len(blob)


def get_cache_entry(conn: sqlite3.Connection, key: str) -> Optional[Tuple[Any, str]]:
    cur = conn.execute("SELECT value, expires_at FROM cache WHERE key=?;", (key,))
    row = cur.fetchone()
    if not row:
        return None
    return orjson.loads(row[0]), str(row[1])
