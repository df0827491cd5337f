# app/core/gazetteer.py
"""
Last-resort place name → coordinates table.

Used by the location resolver when the geocoding service is down or has
never heard of the extracted name. Coordinates are approximate city/region
centres. The table is an ordered tuple, not a dict: when several tokens of a
name are tested, token order decides, and keeping the declared order makes
that deterministic when the table is extended.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from app.core.contracts import GeoPoint


@dataclass(frozen=True)
class GazetteerEntry:
    name: str  # lower-cased lookup key
    lat: float
    lon: float


DEFAULT_GAZETTEER: Tuple[GazetteerEntry, ...] = (
    GazetteerEntry("manhattan", 40.7589, -73.9851),
    GazetteerEntry("nyc", 40.7128, -74.0060),
    GazetteerEntry("new york", 40.7128, -74.0060),
    GazetteerEntry("los angeles", 34.0522, -118.2437),
    GazetteerEntry("dallas", 32.7767, -96.7970),
    GazetteerEntry("chicago", 41.8781, -87.6298),
    GazetteerEntry("miami", 25.7617, -80.1918),
    GazetteerEntry("kakinada", 16.9891, 82.2475),
    GazetteerEntry("andhra pradesh", 15.9129, 79.7400),
    GazetteerEntry("andrapradesh", 15.9129, 79.7400),
    GazetteerEntry("india", 20.5937, 78.9629),
)

_TOKEN_SPLIT = re.compile(r"[,\s]+")


class Gazetteer:
    def __init__(self, entries: Iterable[GazetteerEntry] = DEFAULT_GAZETTEER) -> None:
        self._entries: Tuple[GazetteerEntry, ...] = tuple(
            GazetteerEntry(e.name.strip().lower(), float(e.lat), float(e.lon)) for e in entries
        )

    @property
    def entries(self) -> Tuple[GazetteerEntry, ...]:
        return self._entries

    def _find(self, key: str) -> Optional[GazetteerEntry]:
        for entry in self._entries:
            if entry.name == key:
                return entry
        return None

    def lookup(self, location_name: str) -> Optional[GeoPoint]:
        """
        1) exact match on the whole lower-cased name
        2) otherwise each comma/whitespace token, left to right; first hit wins
        3) otherwise None
        """
        name = (location_name or "").strip().lower()
        if not name:
            return None

        hit = self._find(name)
        if hit is None:
            for token in _TOKEN_SPLIT.split(name):
                if not token:
                    continue
                hit = self._find(token)
                if hit is not None:
                    break

        if hit is None:
            return None
        return GeoPoint(lat=hit.lat, lon=hit.lon)
