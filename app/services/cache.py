"""
Generic cache-aside store.

Callers check `get` first, fall through to the source of truth on a miss and
populate with `set`. Every lookup in the service (geocode:*, social:*) goes
through one `CacheAside` instance over a single key/value/expires_at table.

A cache that is down behaves like an empty cache: read failures are misses
and write failures are dropped, both logged.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Protocol, Tuple

from app.core.storage import get_cache_entry, put_cache_entry
from app.core.time import parse_iso, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: datetime


class CacheBackend(Protocol):
    """Persistent table the cache sits on: read one row, upsert one row."""

    def read(self, key: str) -> Optional[Tuple[Any, str]]:
        ...

    def upsert(self, key: str, value: Any, expires_at: str) -> None:
        ...


class SqliteCacheBackend:
    name = "sqlite"

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def read(self, key: str) -> Optional[Tuple[Any, str]]:
        return get_cache_entry(self.conn, key)

    def upsert(self, key: str, value: Any, expires_at: str) -> None:
        put_cache_entry(self.conn, key=key, value=value, expires_at=expires_at)


class CacheAside:
    def __init__(
        self,
        backend: CacheBackend,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.backend = backend
        self._clock = clock

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Live entry for `key`, or None for missing / expired / unreadable."""
        try:
            row = self.backend.read(key)
        except Exception as e:
            logger.warning("cache_read_failed key=%r error=%s", key, e)
            return None

        if row is None:
            return None

        value, expires_raw = row
        expires_at = parse_iso(expires_raw)
        if expires_at is None or expires_at <= self._clock():
            return None
        return CacheEntry(key=key, value=value, expires_at=expires_at)

    def get(self, key: str) -> Any | None:
        entry = self.entry(key)
        return entry.value if entry else None

    def set(self, key: str, value: Any, ttl_s: int) -> None:
        # Whole-entry replace; concurrent writers to one key: last write wins.
        expires_at = self._clock() + timedelta(seconds=int(ttl_s))
        try:
            self.backend.upsert(key, value, expires_at.isoformat())
        except Exception as e:
            logger.warning("cache_write_failed key=%r error=%s", key, e)
