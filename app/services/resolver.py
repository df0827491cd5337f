# app/services/resolver.py
"""
Location resolution pipeline.

  description ─► cache ─► extractor ─► [geocoder ─► gazetteer] ─► degenerate
                   ▲                                                  │
                   └──────────────── one write per resolution ◄───────┘

`resolve` is total past input validation: every branch ends in a fully
populated ResolutionResult, written once to the cache (1h) and announced on
the event publisher. Confidence goes down as the source gets coarser:
provider importance (0.5 when absent) → 0.3 gazetteer → 0.1 nothing found.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from app.core.contracts import LocationResolvedEvent, ResolutionResult
from app.core.errors import InvalidDescription, LocationNotFound, ServiceUnavailable
from app.core.gazetteer import Gazetteer
from app.core.settings import settings
from app.services.cache import CacheAside
from app.services.events import EventPublisher, NullPublisher, publish_safely
from app.services.extraction import ExtractionChain
from app.services.nominatim import NominatimGeocoding

logger = logging.getLogger(__name__)

CACHE_PREFIX = "geocode:"

GAZETTEER_CONFIDENCE = 0.3
NO_MATCH_CONFIDENCE = 0.1
NO_MATCH_ERROR = "No coordinates available for this location"


def cache_key(description: str) -> str:
    # Exact description text; no normalisation.
    return f"{CACHE_PREFIX}{description}"


class ResolverStrategy(Protocol):
    """One link of the fallback chain.

    Returns a result on success. On fall-through returns None and appends a
    diagnostic to `failures`.
    """

    async def attempt(self, location_name: str, failures: List[str]) -> Optional[ResolutionResult]:
        ...


class GeocoderStrategy:
    def __init__(self, geocoder: NominatimGeocoding) -> None:
        self.geocoder = geocoder

    async def attempt(self, location_name: str, failures: List[str]) -> Optional[ResolutionResult]:
        try:
            hit = await self.geocoder.resolve(location_name)
        except (ServiceUnavailable, LocationNotFound) as e:
            logger.warning("geocode_failed location_name=%r error=%s", location_name, e)
            failures.append(str(e))
            return None

        return ResolutionResult(
            location_name=location_name,
            lat=hit.lat,
            lon=hit.lon,
            display_name=hit.display_name,
            confidence=hit.confidence,
            fallback_used=False,
        )


class GazetteerStrategy:
    def __init__(self, gazetteer: Gazetteer) -> None:
        self.gazetteer = gazetteer

    async def attempt(self, location_name: str, failures: List[str]) -> Optional[ResolutionResult]:
        point = self.gazetteer.lookup(location_name)
        if point is None:
            logger.info("gazetteer_miss location_name=%r", location_name)
            failures.append(f"No gazetteer entry for {location_name!r}")
            return None

        logger.info("gazetteer_match location_name=%r lat=%s lon=%s", location_name, point.lat, point.lon)
        return ResolutionResult(
            location_name=location_name,
            lat=point.lat,
            lon=point.lon,
            display_name=location_name,
            confidence=GAZETTEER_CONFIDENCE,
            fallback_used=True,
            # upstream (geocoder) error, not our own miss
            error=failures[0] if failures else None,
        )


def degenerate_result(location_name: str) -> ResolutionResult:
    return ResolutionResult(
        location_name=location_name,
        lat=0.0,
        lon=0.0,
        display_name=location_name,
        confidence=NO_MATCH_CONFIDENCE,
        fallback_used=True,
        error=NO_MATCH_ERROR,
    )


class LocationResolver:
    def __init__(
        self,
        *,
        cache: CacheAside,
        extractor: ExtractionChain,
        strategies: Sequence[ResolverStrategy],
        publisher: EventPublisher | None = None,
        ttl_s: int | None = None,
    ) -> None:
        self.cache = cache
        self.extractor = extractor
        self.strategies = list(strategies)
        self.publisher: EventPublisher = publisher or NullPublisher()
        self.ttl_s = int(ttl_s or settings.geocode_cache_ttl_s)

    def _cached(self, key: str) -> Optional[ResolutionResult]:
        cached = self.cache.get(key)
        if not cached:
            return None
        try:
            return ResolutionResult.model_validate(cached)
        except Exception as e:
            # A row written by an older shape: recompute and overwrite.
            logger.warning("geocode_cache_unreadable key=%r error=%s", key, e)
            return None

    async def resolve(self, description: str | None) -> ResolutionResult:
        if not isinstance(description, str) or not description:
            raise InvalidDescription("Description required")

        key = cache_key(description)
        cached = self._cached(key)
        if cached is not None:
            logger.info("geocode_cache_hit description=%r", description)
            return cached

        logger.info("geocode_started description=%r", description)
        location_name = await self.extractor.extract(description)

        failures: List[str] = []
        result: Optional[ResolutionResult] = None
        for strategy in self.strategies:
            result = await strategy.attempt(location_name, failures)
            if result is not None:
                break

        if result is None:
            logger.info("geocode_no_match location_name=%r failures=%s", location_name, failures)
            result = degenerate_result(location_name)

        self.cache.set(key, result.model_dump(), self.ttl_s)
        logger.info(
            "geocode_completed location_name=%r lat=%s lon=%s confidence=%s fallback=%s",
            result.location_name,
            result.lat,
            result.lon,
            result.confidence,
            result.fallback_used,
        )

        event = LocationResolvedEvent(description=description, result=result)
        await publish_safely(self.publisher, "location_resolved", event.model_dump())
        return result


def build_resolver(
    *,
    cache: CacheAside,
    extractor: ExtractionChain,
    geocoder: NominatimGeocoding | None = None,
    gazetteer: Gazetteer | None = None,
    publisher: EventPublisher | None = None,
) -> LocationResolver:
    return LocationResolver(
        cache=cache,
        extractor=extractor,
        strategies=[
            GeocoderStrategy(geocoder or NominatimGeocoding()),
            GazetteerStrategy(gazetteer or Gazetteer()),
        ],
        publisher=publisher,
    )
