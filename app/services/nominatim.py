"""
OpenStreetMap Nominatim forward geocoding for extracted location names.

Docs: https://nominatim.org/release-docs/latest/api/Search/

Only the top candidate is used. Outages and timeouts surface as
GeocodingUnavailable and empty answers as LocationNotFound, so the resolver
can drop to the gazetteer. A payload we can't read is a bug and raises
UnexpectedPayload instead.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.contracts import GeocodeHit
from app.core.errors import GeocodingUnavailable, LocationNotFound, UnexpectedPayload
from app.core.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5


def _to_float(v: Any) -> float | None:
    if isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _confidence(candidate: dict[str, Any]) -> float:
    # 0 means the directory has no ranking for the place: treat as absent.
    importance = _to_float(candidate.get("importance"))
    if not importance:
        return DEFAULT_CONFIDENCE
    return max(0.0, min(1.0, importance))


def _candidate_to_hit(candidate: Any, location_name: str) -> GeocodeHit:
    if not isinstance(candidate, dict):
        raise UnexpectedPayload(f"Nominatim candidate is not an object: {type(candidate).__name__}")

    lat = _to_float(candidate.get("lat"))
    lon = _to_float(candidate.get("lon"))
    if lat is None or lon is None:
        raise UnexpectedPayload(f"Nominatim candidate without coordinates for {location_name!r}")

    return GeocodeHit(
        lat=lat,
        lon=lon,
        display_name=str(candidate.get("display_name") or location_name),
        confidence=_confidence(candidate),
    )


class NominatimGeocoding:
    """Thin wrapper around Nominatim /search (format=json, limit=1)."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.nominatim_url
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.timeout = float(timeout_s or settings.geocode_timeout_s)
        self._transport = transport

    async def resolve(self, location_name: str) -> GeocodeHit:
        """
        Forward geocode a place name → top candidate.

        Raises
        ------
        GeocodingUnavailable
            timeout, transport error or HTTP error status.
        LocationNotFound
            the directory has no candidate for the name.
        UnexpectedPayload
            the response is not a list of candidates with coordinates.
        """
        query = (location_name or "").strip()
        if not query:
            raise GeocodingUnavailable("Empty location name")

        params = {"q": query, "format": "json", "limit": "1"}
        headers = {"User-Agent": self.user_agent}

        logger.info("nominatim_geocode query=%r", query)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self.base_url, params=params, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "nominatim_geocode_http_error status=%d body=%s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise GeocodingUnavailable(f"Nominatim geocoding failed: HTTP {exc.response.status_code}") from exc
        except httpx.TimeoutException as exc:
            logger.error("nominatim_geocode_timeout query=%r", query)
            raise GeocodingUnavailable("Nominatim geocoding timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("nominatim_geocode_transport_error query=%r error=%s", query, exc)
            raise GeocodingUnavailable(f"Nominatim geocoding failed: {exc}") from exc
        except ValueError as exc:
            raise UnexpectedPayload(f"Nominatim returned non-JSON body: {exc}") from exc

        if not isinstance(data, list):
            raise UnexpectedPayload(f"Nominatim returned {type(data).__name__}, expected a list")

        logger.info("nominatim_geocode results=%d", len(data))

        if not data:
            raise LocationNotFound("Location not found in geocoding service")

        return _candidate_to_hit(data[0], query)
