from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Any, Dict, List, Protocol

from app.core.contracts import SocialMediaUpdatedEvent
from app.core.settings import settings
from app.core.time import utc_now
from app.services.cache import CacheAside
from app.services.events import EventPublisher, NullPublisher, publish_safely
from app.services.priority import PriorityClassifier

logger = logging.getLogger(__name__)


def social_cache_key(disaster_id: str) -> str:
    return f"social:{disaster_id}"


class SocialFeed(Protocol):
    def fetch(self, disaster_id: str) -> List[Dict[str, Any]]:
        ...


# (post, user, platform)
_SAMPLE_POSTS: tuple[tuple[str, str, str], ...] = (
    ("#floodrelief Need immediate assistance in Lower East Side. Water rising fast!", "citizen1", "twitter"),
    ("SOS! Trapped in apartment building on 2nd floor. Water at door level. Please help!", "citizen2", "twitter"),
    ("Evacuating area near Manhattan Bridge. Emergency services on scene.", "citizen3", "twitter"),
    ("Red Cross shelter open at PS 188. Food and medical assistance available.", "relief_worker1", "twitter"),
    ("Bellevue Hospital accepting emergency cases. Ambulances available for transport.", "medical_team", "twitter"),
    ("Power outage affecting 10 blocks in East Village. Stay safe everyone!", "citizen4", "twitter"),
    ("Critical: Elderly residents need evacuation assistance on 5th floor, 123 Main St.", "neighbor_help", "twitter"),
    ("Food distribution center set up at Union Square. Bring containers.", "community_org", "twitter"),
)


class SampleSocialFeed:
    """Stand-in feed with realistic disaster chatter, posted within the last hour."""

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def fetch(self, disaster_id: str) -> List[Dict[str, Any]]:
        now = utc_now()
        out: List[Dict[str, Any]] = []
        for post, user, platform in _SAMPLE_POSTS:
            ts = now - timedelta(seconds=self._rng.uniform(0, 3600))
            out.append({"post": post, "user": user, "platform": platform, "timestamp": ts.isoformat()})
        return out


class SocialMedia:
    def __init__(
        self,
        *,
        cache: CacheAside,
        feed: SocialFeed,
        classifier: PriorityClassifier,
        publisher: EventPublisher | None = None,
        ttl_s: int | None = None,
    ) -> None:
        self.cache = cache
        self.feed = feed
        self.classifier = classifier
        self.publisher: EventPublisher = publisher or NullPublisher()
        self.ttl_s = int(ttl_s or settings.social_cache_ttl_s)

    async def posts(self, disaster_id: str) -> List[Dict[str, Any]]:
        key = social_cache_key(disaster_id)
        cached = self.cache.get(key)
        if cached:
            logger.info("social_cache_hit disaster_id=%s", disaster_id)
            return list(cached)

        raw = self.feed.fetch(disaster_id)
        data = self.classifier.classify_items(raw, "post")

        self.cache.set(key, data, self.ttl_s)

        event = SocialMediaUpdatedEvent(disaster_id=disaster_id, data=data)
        await publish_safely(self.publisher, "social_media_updated", event.model_dump())

        logger.info(
            "social_fetch_completed disaster_id=%s post_count=%d urgent_count=%d high_count=%d",
            disaster_id,
            len(data),
            sum(1 for p in data if p["priority"] == "urgent"),
            sum(1 for p in data if p["priority"] == "high"),
        )
        return data
