import random

from app.services.events import RecordingPublisher
from app.services.priority import PriorityClassifier
from app.services.social import SampleSocialFeed, SocialMedia, social_cache_key


class CountingFeed:
    def __init__(self) -> None:
        self.inner = SampleSocialFeed(rng=random.Random(7))
        self.calls = 0

    def fetch(self, disaster_id):
        self.calls += 1
        return self.inner.fetch(disaster_id)


def _service(cache, feed, publisher=None):
    return SocialMedia(cache=cache, feed=feed, classifier=PriorityClassifier(), publisher=publisher)


async def test_posts_are_classified(cache):
    posts = await _service(cache, CountingFeed()).posts("d-1")

    assert len(posts) == 8
    by_user = {p["user"]: p for p in posts}
    assert by_user["citizen1"]["priority"] == "urgent"
    assert by_user["citizen1"]["priority_reason"] == "Contains urgent keyword: immediate"
    assert by_user["citizen2"]["priority_reason"] == "Contains urgent keyword: sos"
    assert by_user["relief_worker1"]["priority"] == "high"
    assert by_user["community_org"]["priority"] == "normal"


async def test_posts_are_cached_per_disaster(cache, clock):
    feed = CountingFeed()
    service = _service(cache, feed)

    first = await service.posts("d-1")
    second = await service.posts("d-1")
    await service.posts("d-2")

    assert second == first
    assert feed.calls == 2
    assert cache.get(social_cache_key("d-1")) == first

    clock.advance(901)
    await service.posts("d-1")
    assert feed.calls == 3


async def test_update_is_published_on_fetch_only(cache):
    publisher = RecordingPublisher()
    service = _service(cache, CountingFeed(), publisher=publisher)

    data = await service.posts("d-1")
    await service.posts("d-1")

    assert publisher.events == [("social_media_updated", {"disaster_id": "d-1", "data": data})]


def test_sample_posts_are_recent():
    posts = SampleSocialFeed(rng=random.Random(1)).fetch("d-1")
    assert {p["platform"] for p in posts} == {"twitter"}
    assert all(p["timestamp"] for p in posts)
