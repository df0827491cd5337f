"""
Tests for the location resolution pipeline.
"""

import pytest

from conftest import CountingExtractor, FakeGeocoder

from app.core.contracts import GeocodeHit
from app.core.errors import InvalidDescription, UnexpectedPayload
from app.core.gazetteer import Gazetteer
from app.services.cache import CacheAside
from app.services.events import RecordingPublisher
from app.services.extraction import ExtractionChain, KeywordExtractor
from app.services.resolver import (
    GazetteerStrategy,
    GeocoderStrategy,
    LocationResolver,
    build_resolver,
    cache_key,
)


class ExplodingPublisher:
    async def publish(self, event, payload):
        raise RuntimeError("socket closed")


def _resolver(cache, geocoder, *, extractor=None, publisher=None):
    extractor = extractor or CountingExtractor(KeywordExtractor())
    resolver = build_resolver(
        cache=cache,
        extractor=ExtractionChain([extractor]),
        geocoder=geocoder,
        gazetteer=Gazetteer(),
        publisher=publisher,
    )
    return resolver, extractor


async def test_geocoder_success(cache):
    geocoder = FakeGeocoder(
        GeocodeHit(lat=29.76, lon=-95.37, display_name="Houston, Texas, United States", confidence=0.71)
    )
    resolver, _ = _resolver(cache, geocoder)

    result = await resolver.resolve("Tornado touchdown in Houston suburbs")

    assert geocoder.calls == ["Houston"]
    assert result.location_name == "Houston"
    assert (result.lat, result.lon) == (29.76, -95.37)
    assert result.display_name == "Houston, Texas, United States"
    assert result.confidence == 0.71
    assert result.fallback_used is False
    assert result.error is None


async def test_scenario_manhattan_gazetteer_fallback(cache):
    resolver, _ = _resolver(cache, FakeGeocoder())

    result = await resolver.resolve("Heavy flooding in Manhattan")

    assert result.location_name == "Manhattan"
    assert result.lat == pytest.approx(40.7589)
    assert result.lon == pytest.approx(-73.9851)
    assert result.confidence == 0.3
    assert result.fallback_used is True
    assert result.display_name == "Manhattan"
    assert result.error == "Nominatim geocoding timed out"


async def test_gazetteer_token_match(cache):
    resolver, _ = _resolver(cache, FakeGeocoder())

    result = await resolver.resolve("Flooding near Kakinada, Andrapradesh")

    assert (result.lat, result.lon) == (16.9891, 82.2475)
    assert result.confidence == 0.3


async def test_no_match_is_degenerate(cache):
    resolver, _ = _resolver(cache, FakeGeocoder())

    result = await resolver.resolve("water rising fast, send boats")

    assert result.location_name == "Unknown Location"
    assert (result.lat, result.lon) == (0.0, 0.0)
    assert result.confidence == 0.1
    assert result.fallback_used is True
    assert result.error == "No coordinates available for this location"


@pytest.mark.parametrize("description", ["", None])
async def test_empty_description_is_rejected_before_any_stage(cache, description):
    geocoder = FakeGeocoder()
    resolver, extractor = _resolver(cache, geocoder)

    with pytest.raises(InvalidDescription):
        await resolver.resolve(description)

    assert extractor.calls == []
    assert geocoder.calls == []


async def test_second_call_is_a_cache_hit(cache):
    geocoder = FakeGeocoder()
    resolver, extractor = _resolver(cache, geocoder)

    first = await resolver.resolve("Heavy flooding in Manhattan")
    second = await resolver.resolve("Heavy flooding in Manhattan")

    assert second == first
    assert len(extractor.calls) == 1
    assert len(geocoder.calls) == 1


async def test_cache_key_is_the_exact_description(cache):
    geocoder = FakeGeocoder()
    resolver, _ = _resolver(cache, geocoder)

    await resolver.resolve("Heavy flooding in Manhattan")
    await resolver.resolve("heavy flooding in Manhattan")

    assert len(geocoder.calls) == 2
    assert cache.get(cache_key("Heavy flooding in Manhattan"))["lat"] == pytest.approx(40.7589)


async def test_expired_entry_runs_the_pipeline_again(cache, clock):
    geocoder = FakeGeocoder()
    resolver, extractor = _resolver(cache, geocoder)

    await resolver.resolve("Heavy flooding in Manhattan")
    clock.advance(3599)
    await resolver.resolve("Heavy flooding in Manhattan")
    assert len(geocoder.calls) == 1

    clock.advance(2)
    await resolver.resolve("Heavy flooding in Manhattan")
    assert len(geocoder.calls) == 2
    assert len(extractor.calls) == 2


async def test_cache_hit_returns_stored_result_verbatim(cache):
    stored = {
        "location_name": "Somewhere",
        "lat": 1.5,
        "lon": 2.5,
        "display_name": "Somewhere, Earth",
        "confidence": 0.42,
        "fallback_used": False,
        "error": None,
    }
    cache.set(cache_key("anything at all"), stored, 3600)
    geocoder = FakeGeocoder()
    resolver, extractor = _resolver(cache, geocoder)

    result = await resolver.resolve("anything at all")

    assert result.model_dump() == stored
    assert extractor.calls == []
    assert geocoder.calls == []


async def test_unreadable_cache_still_resolves(clock):
    class DownBackend:
        def read(self, key):
            raise ConnectionError("down")

        def upsert(self, key, value, expires_at):
            raise ConnectionError("down")

    resolver, _ = _resolver(CacheAside(DownBackend(), clock=clock), FakeGeocoder())

    result = await resolver.resolve("Heavy flooding in Manhattan")
    assert result.confidence == 0.3


async def test_result_is_published(cache):
    publisher = RecordingPublisher()
    resolver, _ = _resolver(cache, FakeGeocoder(), publisher=publisher)

    result = await resolver.resolve("Heavy flooding in Manhattan")

    assert len(publisher.events) == 1
    event, payload = publisher.events[0]
    assert event == "location_resolved"
    assert payload["description"] == "Heavy flooding in Manhattan"
    assert payload["result"] == result.model_dump()


async def test_publish_failure_is_not_propagated(cache):
    resolver, _ = _resolver(cache, FakeGeocoder(), publisher=ExplodingPublisher())

    result = await resolver.resolve("Heavy flooding in Manhattan")
    assert result.fallback_used is True


async def test_unexpected_payload_propagates(cache):
    resolver, _ = _resolver(cache, FakeGeocoder(error=UnexpectedPayload("Nominatim returned dict")))

    with pytest.raises(UnexpectedPayload):
        await resolver.resolve("Heavy flooding in Manhattan")
    assert cache.get(cache_key("Heavy flooding in Manhattan")) is None


async def test_custom_strategy_chain(cache):
    # gazetteer only: no upstream error to report
    resolver = LocationResolver(
        cache=cache,
        extractor=ExtractionChain([KeywordExtractor()]),
        strategies=[GazetteerStrategy(Gazetteer())],
    )
    result = await resolver.resolve("Wildfire in Miami")
    assert (result.lat, result.lon) == (25.7617, -80.1918)
    assert result.error is None

    geocoder = FakeGeocoder()
    resolver = LocationResolver(
        cache=cache,
        extractor=ExtractionChain([KeywordExtractor()]),
        strategies=[GeocoderStrategy(geocoder)],
    )
    result = await resolver.resolve("Wildfire in Chicago")
    assert geocoder.calls == ["Chicago"]
    assert result.confidence == 0.1


@pytest.mark.parametrize(
    "description",
    ["x", "   ", "Heavy flooding in Manhattan", "🌊🌊🌊", "Unknown Location", "a, b ,, c"],
)
async def test_resolution_is_total(cache, description):
    resolver, _ = _resolver(cache, FakeGeocoder())

    result = await resolver.resolve(description)

    assert isinstance(result.lat, float)
    assert isinstance(result.lon, float)
    assert 0.0 <= result.confidence <= 1.0
