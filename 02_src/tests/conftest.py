"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from event_monitor.errors import TransportError
from event_monitor.transport import SubscriptionHandle


class FakePubSubClient:
    """Scriptable transport: subscribe can be held open or made to fail."""

    def __init__(self):
        self.gate: asyncio.Event | None = None
        self.subscribe_error: Exception | None = None
        self.unsubscribe_error: Exception | None = None
        self.available = True
        self.subscribe_calls: list[tuple[str, int]] = []
        self.released: list[SubscriptionHandle] = []
        self.callbacks: dict = {}
        self.error_handlers: list = []

    async def subscribe(self, channel, replay_cursor, on_message):
        self.subscribe_calls.append((channel, replay_cursor))
        if self.gate is not None:
            await self.gate.wait()
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.callbacks[channel] = on_message
        return SubscriptionHandle(
            id=f"handle-{len(self.subscribe_calls)}",
            channel=channel,
            replay_cursor=replay_cursor,
        )

    async def unsubscribe(self, handle):
        if self.unsubscribe_error is not None:
            raise self.unsubscribe_error
        self.released.append(handle)
        self.callbacks.pop(handle.channel, None)

    def on_global_error(self, handler):
        self.error_handlers.append(handler)

    async def is_available(self):
        return self.available

    async def deliver(self, channel, message):
        await self.callbacks[channel](message)

    async def fail(self, detail, channel=None):
        for handler in self.error_handlers:
            await handler(TransportError(detail, channel))


def make_message(replay_id, payload=None, schema="schema-1"):
    """Build a transport envelope the way the broker does."""
    return {
        "channel": "/event/Order_Placed__e",
        "data": {
            "schema": schema,
            "payload": payload if payload is not None else {"n": replay_id},
            "event": {"replayId": replay_id},
        },
    }


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from event_monitor.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def client():
    """Create in-memory pub/sub broker."""
    from event_monitor.transport import InMemoryPubSubClient

    return InMemoryPubSubClient()


@pytest.fixture
def fake_client():
    """Create scriptable fake transport."""
    return FakePubSubClient()


@pytest.fixture
def buffer():
    """Create live event buffer."""
    from event_monitor.buffer import LiveEventBuffer

    return LiveEventBuffer()


@pytest.fixture
def registry(client, buffer, storage):
    """Create SubscriptionRegistry on the in-memory broker."""
    from event_monitor.subscriptions import SubscriptionRegistry

    return SubscriptionRegistry(client=client, buffer=buffer, persistence=storage)


@pytest.fixture
def fake_registry(fake_client, buffer):
    """Create SubscriptionRegistry on the fake transport, without persistence."""
    from event_monitor.subscriptions import SubscriptionRegistry

    return SubscriptionRegistry(client=fake_client, buffer=buffer)


@pytest.fixture
def discovery(storage):
    """Create ChannelDiscovery without a catalog file."""
    from event_monitor.discovery import ChannelDiscovery

    return ChannelDiscovery(storage)


@pytest_asyncio.fixture
async def dashboard(discovery, registry, buffer, storage):
    """Create Dashboard with a few registered channels."""
    from event_monitor.dashboard import Dashboard
    from event_monitor.models import Channel

    for path, name in [
        ("/event/Order_Placed__e", "Order Placed"),
        ("/event/Invoice_Paid__e", "Invoice Paid"),
        ("/data/AccountChangeEvent", "Account Change Event"),
        ("/event/BatchApexErrorEvent", "Batch Apex Error Event"),
    ]:
        await discovery.register_channel(Channel.from_path(path, name=name))

    db = Dashboard(discovery=discovery, registry=registry, buffer=buffer, persistence=storage)
    await db.refresh()
    return db


@pytest.fixture
def order_channel():
    """A custom platform event channel."""
    from event_monitor.models import Channel

    return Channel.from_path("/event/Order_Placed__e", name="Order Placed")
