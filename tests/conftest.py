"""
Shared fixtures. No test touches the network: outbound HTTP goes through
httpx.MockTransport and the cache lives in an in-memory SQLite database.
"""

import os

# Must happen before anything imports app.core.settings.
os.environ["CACHE_BACKEND"] = "sqlite"
os.environ["CACHE_DB_PATH"] = ":memory:"
os.environ["GEMINI_API_KEY"] = ""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.contracts import GeocodeHit
from app.core.errors import GeocodingUnavailable
from app.core.storage import connect_sqlite, ensure_schema
from app.services.cache import CacheAside, SqliteCacheBackend


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeGeocoder:
    """Stands in for NominatimGeocoding; counts calls."""

    def __init__(self, hit: GeocodeHit | None = None, error: Exception | None = None) -> None:
        self.hit = hit
        self.error = error or GeocodingUnavailable("Nominatim geocoding timed out")
        self.calls: list[str] = []

    async def resolve(self, location_name: str) -> GeocodeHit:
        self.calls.append(location_name)
        if self.hit is None:
            raise self.error
        return self.hit


class CountingExtractor:
    """Wraps another extractor and counts calls."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.calls: list[str] = []

    async def extract(self, description: str):
        self.calls.append(description)
        return await self.inner.extract(description)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def cache_conn():
    conn = connect_sqlite(":memory:")
    ensure_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def cache(cache_conn, clock):
    return CacheAside(SqliteCacheBackend(cache_conn), clock=clock)
