"""
Domain Event Bus
Fire-and-forget publication of named domain events with a JSON payload.

- InMemoryEventBus: in-process subscribers (default, and the fallback when the
  broker is unreachable).
- RedisEventBus: Redis pub/sub, one channel per event name.
"""
from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol
from uuid import uuid4

import redis.asyncio as redis
from fastapi.encoders import jsonable_encoder

from src.shared.config import Settings
from src.shared.logging import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class EventPublisher(Protocol):
    async def publish(self, name: str, payload: Dict[str, Any]) -> None:
        ...


def build_envelope(name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event_id": str(uuid4()),
        "event_type": name,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "data": jsonable_encoder(payload),
    }


class InMemoryEventBus:
    """
    In-memory event bus for domain event publication and subscription.

    Handler failures are logged and never propagate to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self.published: List[Dict[str, Any]] = []

    def subscribe(self, name: str, handler: EventHandler) -> None:
        self._handlers[name].append(handler)
        logger.debug("event_bus.subscribed", event_type=name, handler=getattr(handler, "__name__", repr(handler)))

    async def publish(self, name: str, payload: Dict[str, Any]) -> None:
        envelope = build_envelope(name, payload)
        self.published.append(envelope)
        handlers = self._handlers.get(name, [])
        logger.info("event_bus.published", event_type=name, event_id=envelope["event_id"], handler_count=len(handlers))
        for handler in handlers:
            try:
                await handler(envelope)
            except Exception as e:
                # Continue processing other handlers even if one fails
                logger.error(
                    "event_bus.handler_failed",
                    event_type=name,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(e),
                )

    async def close(self) -> None:
        self._handlers.clear()


class RedisEventBus:
    """Event bus implementation using Redis pub/sub (channel `<prefix>.<event name>`)."""

    def __init__(self, client: redis.Redis, *, channel_prefix: str) -> None:
        self._redis = client
        self._prefix = channel_prefix

    def channel_for(self, name: str) -> str:
        return f"{self._prefix}.{name}"

    async def publish(self, name: str, payload: Dict[str, Any]) -> None:
        envelope = build_envelope(name, payload)
        receivers = await self._redis.publish(self.channel_for(name), json.dumps(envelope))
        logger.info("event_bus.published", event_type=name, event_id=envelope["event_id"], receivers=receivers)

    async def close(self) -> None:
        await self._redis.aclose()


async def create_event_bus(settings: Settings, client: Optional[redis.Redis] = None):
    """
    Connect to the broker when REDIS_URL is configured.
    An unreachable broker is not fatal: the service keeps running on the in-process bus.
    """
    if not settings.redis_url and client is None:
        logger.info("event_bus.in_memory", reason="REDIS_URL not set")
        return InMemoryEventBus()

    client = client or redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=settings.event_publish_timeout_seconds,
        socket_timeout=settings.event_publish_timeout_seconds,
    )
    try:
        await client.ping()
    except (redis.RedisError, OSError) as e:
        logger.warning("event_bus.broker_unavailable", error=str(e))
        await client.aclose()
        return InMemoryEventBus()

    logger.info("event_bus.connected", channel_prefix=settings.events_channel_prefix)
    return RedisEventBus(client, channel_prefix=settings.events_channel_prefix)
