"""
Shared Messaging Infrastructure
Domain event publishing over Redis pub/sub or in process
"""
from src.shared.infrastructure.messaging.event_bus import (
    EventPublisher,
    InMemoryEventBus,
    RedisEventBus,
    create_event_bus,
)

__all__ = [
    "EventPublisher",
    "InMemoryEventBus",
    "RedisEventBus",
    "create_event_bus",
]
