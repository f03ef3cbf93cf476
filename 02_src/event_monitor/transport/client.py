"""Pub/sub client contract and an in-memory broker implementing it."""

import asyncio
import itertools
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol

from ..config import RETENTION_WINDOW
from ..errors import TransportError
from ..logging_config import get_logger
from ..models import REPLAY_ALL, REPLAY_TIP

logger = get_logger(__name__)


MessageCallback = Callable[[dict], Awaitable[None]]
ErrorHandler = Callable[[TransportError], Awaitable[None]]

DEFAULT_PUBLISHER_ID = "005000000000000AAA"


@dataclass(frozen=True)
class SubscriptionHandle:
    """Opaque token returned by subscribe, passed back to unsubscribe."""

    id: str
    channel: str
    replay_cursor: int


class IPubSubClient(Protocol):
    """Streaming transport for platform channels."""

    async def subscribe(
        self, channel: str, replay_cursor: int, on_message: MessageCallback
    ) -> SubscriptionHandle:
        """Open a subscription. Raises TransportError on failure."""
        ...

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Close a subscription. Raises TransportError on failure."""
        ...

    def on_global_error(self, handler: ErrorHandler) -> None:
        """Register a handler for connection-level errors."""
        ...

    async def is_available(self) -> bool:
        """Probe whether streaming is enabled."""
        ...


class InMemoryPubSubClient:
    """In-memory broker with a per-channel retention window and replay ids."""

    def __init__(self, retention: int = RETENTION_WINDOW):
        self._retention = retention
        self._subscribers: dict[str, dict[str, MessageCallback]] = {}
        self._retained: dict[str, deque[dict]] = {}
        self._replay_ids = itertools.count(1)
        self._error_handlers: list[ErrorHandler] = []
        self._available = True

    def set_available(self, available: bool) -> None:
        """Switch the broker on or off; subscribe fails while it is off."""
        self._available = available

    async def is_available(self) -> bool:
        return self._available

    def on_global_error(self, handler: ErrorHandler) -> None:
        self._error_handlers.append(handler)

    async def subscribe(
        self, channel: str, replay_cursor: int, on_message: MessageCallback
    ) -> SubscriptionHandle:
        """Register a callback, replaying retained messages per the cursor."""
        if not self._available:
            raise TransportError("Streaming API is not available", channel)
        if not channel:
            raise TransportError("No channel specified")

        handle = SubscriptionHandle(
            id=str(uuid.uuid4()), channel=channel, replay_cursor=replay_cursor
        )
        self._subscribers.setdefault(channel, {})[handle.id] = on_message
        logger.info("Subscribed %s (replay %s)", channel, replay_cursor)

        for message in self._replayable(channel, replay_cursor):
            await self._deliver(on_message, message)

        return handle

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        callbacks = self._subscribers.get(handle.channel, {})
        if handle.id not in callbacks:
            raise TransportError("Unknown subscription handle", handle.channel)
        del callbacks[handle.id]
        logger.info("Unsubscribed %s", handle.channel)

    async def publish(
        self,
        channel: str,
        payload: dict,
        schema: str | None = None,
        published_by: str = DEFAULT_PUBLISHER_ID,
    ) -> dict:
        """Publish a payload: wraps it in an envelope, retains it, delivers it."""
        payload = dict(payload)
        payload.setdefault("CreatedById", published_by)
        payload.setdefault("CreatedDate", datetime.now(timezone.utc).isoformat())

        message = {
            "channel": channel,
            "data": {
                "schema": schema or f"schema-{channel.rsplit('/', 1)[-1]}",
                "payload": payload,
                "event": {"replayId": next(self._replay_ids)},
            },
        }

        retained = self._retained.setdefault(channel, deque(maxlen=self._retention))
        retained.append(message)

        # Call all subscribers concurrently
        callbacks = list(self._subscribers.get(channel, {}).values())
        if callbacks:
            await asyncio.gather(
                *[self._deliver(callback, message) for callback in callbacks]
            )
        return message

    async def report_error(self, detail: str, channel: str | None = None) -> None:
        """Surface a connection-level error to every registered handler."""
        error = TransportError(detail, channel)
        results = await asyncio.gather(
            *[handler(error) for handler in self._error_handlers],
            return_exceptions=True,
        )
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error("Error in transport error handler %s: %s", i, result)

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, {}))

    def _replayable(self, channel: str, replay_cursor: int) -> list[dict]:
        retained = list(self._retained.get(channel, ()))
        if replay_cursor == REPLAY_TIP:
            return []
        if replay_cursor == REPLAY_ALL:
            return retained
        return [m for m in retained if _replay_id(m) > replay_cursor]

    async def _deliver(self, callback: MessageCallback, message: dict) -> None:
        try:
            await callback(message)
        except Exception as e:
            logger.error("Error in message callback: %s", e)


def _replay_id(message: dict) -> int:
    return int(message.get("data", {}).get("event", {}).get("replayId", 0))
