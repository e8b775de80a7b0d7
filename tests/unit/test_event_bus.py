import json

import pytest
import redis.asyncio as redis

from src.shared.config import Settings, get_settings
from src.shared.infrastructure.messaging.event_bus import InMemoryEventBus, RedisEventBus, create_event_bus

pytestmark = pytest.mark.anyio


class RecordingRedis:
    def __init__(self, ping_error=None):
        self.ping_error = ping_error
        self.messages = []
        self.closed = False

    async def ping(self):
        if self.ping_error:
            raise self.ping_error
        return True

    async def publish(self, channel, message):
        self.messages.append((channel, json.loads(message)))
        return 1

    async def aclose(self):
        self.closed = True


async def test_in_memory_bus_delivers_and_survives_failing_handler():
    bus = InMemoryEventBus()
    received = []

    async def broken(envelope):
        raise RuntimeError("handler bug")

    async def collect(envelope):
        received.append(envelope)

    bus.subscribe("appointment.created", broken)
    bus.subscribe("appointment.created", collect)
    await bus.publish("appointment.created", {"appointment_id": 1})

    assert received[0]["event_type"] == "appointment.created"
    assert received[0]["data"] == {"appointment_id": 1}
    assert len(bus.published) == 1


async def test_redis_bus_uses_prefixed_channel():
    client = RecordingRedis()
    bus = RedisEventBus(client, channel_prefix="vetcare")
    await bus.publish("appointment.created", {"appointment_id": 7})
    channel, envelope = client.messages[0]
    assert channel == "vetcare.appointment.created"
    assert envelope["data"]["appointment_id"] == 7


async def test_factory_falls_back_when_broker_unreachable():
    client = RecordingRedis(ping_error=redis.ConnectionError("refused"))
    bus = await create_event_bus(get_settings(), client=client)
    assert isinstance(bus, InMemoryEventBus)
    assert client.closed


async def test_factory_without_url_is_in_memory():
    assert isinstance(await create_event_bus(get_settings()), InMemoryEventBus)


async def test_factory_bounds_broker_socket_io(monkeypatch):
    seen = {}

    def fake_from_url(url, **kwargs):
        seen.update(kwargs, url=url)
        return RecordingRedis()

    monkeypatch.setattr(redis, "from_url", fake_from_url)
    settings = Settings(secret_key="k", redis_url="redis://localhost:6379/0", event_publish_timeout_seconds=2.5)
    bus = await create_event_bus(settings)

    assert isinstance(bus, RedisEventBus)
    assert seen["socket_connect_timeout"] == 2.5
    assert seen["socket_timeout"] == 2.5
