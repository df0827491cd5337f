from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Tuple

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    """Fan-out sink (websocket hub, message bus, ...). Implemented outside this service."""

    async def publish(self, event: str, payload: Dict[str, Any]) -> None:
        ...


class NullPublisher:
    async def publish(self, event: str, payload: Dict[str, Any]) -> None:
        return None


class LoggingPublisher:
    async def publish(self, event: str, payload: Dict[str, Any]) -> None:
        logger.info("event_published event=%s keys=%s", event, sorted(payload))


class RecordingPublisher:
    """Keeps published events in memory. Handy for tests and local runs."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    async def publish(self, event: str, payload: Dict[str, Any]) -> None:
        self.events.append((event, payload))


async def publish_safely(publisher: EventPublisher, event: str, payload: Dict[str, Any]) -> bool:
    """Best-effort publish: failures are logged, never raised."""
    try:
        await publisher.publish(event, payload)
        return True
    except Exception as e:
        logger.warning("publish_failed event=%s error=%s", event, e)
        return False
