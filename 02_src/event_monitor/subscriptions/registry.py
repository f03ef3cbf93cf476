"""SubscriptionRegistry implementation."""

import asyncio
import functools
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from ..buffer import LiveEventBuffer
from ..errors import PersistenceError, TransportError
from ..logging_config import get_logger
from ..models import (
    REPLAY_TIP,
    Channel,
    LiveEvent,
    Notification,
    NotificationKind,
    Subscription,
    SubscriptionState,
)
from ..storage import IPersistenceGateway
from ..transport import IPubSubClient, SubscriptionHandle
from .envelope import Envelope, build_log_entry, parse_envelope

logger = get_logger(__name__)


NotificationHandler = Callable[[Notification], Awaitable[None]]


class ISubscriptionRegistry(Protocol):
    """Lifecycle of channel subscriptions."""

    def add_listener(self, handler: NotificationHandler) -> None:
        """Register a notification handler."""
        ...

    def state(self, channel_id: str) -> SubscriptionState:
        """Current state of a channel (UNSUBSCRIBED when unknown)."""
        ...

    def subscriptions(self) -> list[Subscription]:
        """Snapshot of every non-unsubscribed channel."""
        ...

    async def request_subscribe(
        self, channel: Channel, replay_cursor: int = REPLAY_TIP
    ) -> bool:
        """Open a subscription. False if the channel is not UNSUBSCRIBED."""
        ...

    async def request_unsubscribe(self, channel_id: str) -> bool:
        """Close a subscription. False if the channel is not SUBSCRIBED."""
        ...

    async def teardown(self) -> None:
        """Best-effort release of every open or pending subscription."""
        ...


class SubscriptionRegistry:
    """Tracks channel subscriptions and feeds received messages into the live buffer."""

    def __init__(
        self,
        client: IPubSubClient,
        buffer: LiveEventBuffer,
        persistence: IPersistenceGateway | None = None,
    ):
        self._client = client
        self._buffer = buffer
        self._persistence = persistence

        self._subscriptions: dict[str, Subscription] = {}
        self._handles: dict[str, SubscriptionHandle] = {}
        self._abandoned: set[str] = set()  # pending subscribes to drop on arrival
        self._listeners: list[NotificationHandler] = []
        self._persist_tasks: set[asyncio.Task] = set()

        client.on_global_error(self._handle_transport_error)

    def add_listener(self, handler: NotificationHandler) -> None:
        """Register a notification handler."""
        self._listeners.append(handler)

    def state(self, channel_id: str) -> SubscriptionState:
        """Current state of a channel (UNSUBSCRIBED when unknown)."""
        subscription = self._subscriptions.get(channel_id)
        return subscription.state if subscription else SubscriptionState.UNSUBSCRIBED

    def get(self, channel_id: str) -> Subscription | None:
        return self._subscriptions.get(channel_id)

    def subscriptions(self) -> list[Subscription]:
        """Snapshot of every non-unsubscribed channel."""
        return list(self._subscriptions.values())

    async def request_subscribe(
        self, channel: Channel, replay_cursor: int = REPLAY_TIP
    ) -> bool:
        """Open a subscription. False if the channel is not UNSUBSCRIBED."""
        if self.state(channel.id) is not SubscriptionState.UNSUBSCRIBED:
            logger.debug("Ignoring subscribe for %s: %s", channel.id, self.state(channel.id).value)
            return False

        subscription = Subscription(
            channel=channel,
            replay_cursor=replay_cursor,
            state=SubscriptionState.SUBSCRIBING,
        )
        self._subscriptions[channel.id] = subscription
        logger.info("Subscribing to %s (replay %s)", channel.id, replay_cursor)

        try:
            handle = await self._client.subscribe(
                channel.id,
                replay_cursor,
                functools.partial(self._handle_message, channel.id),
            )
        except asyncio.CancelledError:
            self._subscriptions.pop(channel.id, None)
            self._abandoned.discard(channel.id)
            raise
        except Exception as e:
            self._subscriptions.pop(channel.id, None)
            detail = e.detail if isinstance(e, TransportError) else str(e)
            logger.error(
                "Subscribe error on %s: %s",
                channel.id,
                detail,
                extra={"context": {"channel": channel.id}},
            )
            if channel.id in self._abandoned:
                self._abandoned.discard(channel.id)
                return True
            await self._emit(
                Notification(
                    kind=NotificationKind.SUBSCRIBE_ERROR,
                    channel=channel.id,
                    error=detail,
                )
            )
            return True

        if channel.id in self._abandoned:
            # Torn down while the call was in flight
            self._abandoned.discard(channel.id)
            self._subscriptions.pop(channel.id, None)
            await self._release(handle)
            return True

        self._subscriptions[channel.id] = replace(
            subscription, state=SubscriptionState.SUBSCRIBED
        )
        self._handles[channel.id] = handle
        await self._emit(
            Notification(kind=NotificationKind.SUBSCRIBED, channel=channel.id)
        )
        return True

    async def request_unsubscribe(self, channel_id: str) -> bool:
        """Close a subscription. False if the channel is not SUBSCRIBED."""
        subscription = self._subscriptions.get(channel_id)
        if subscription is None or subscription.state is not SubscriptionState.SUBSCRIBED:
            logger.debug("Ignoring unsubscribe for %s: %s", channel_id, self.state(channel_id).value)
            return False

        self._subscriptions[channel_id] = replace(
            subscription, state=SubscriptionState.UNSUBSCRIBING
        )
        handle = self._handles.pop(channel_id)

        try:
            await self._client.unsubscribe(handle)
        except Exception as e:
            logger.error(
                "Unsubscribe error on %s: %s",
                channel_id,
                e,
                extra={"context": {"channel": channel_id}},
            )
            succeeded = False
        else:
            succeeded = True
        finally:
            self._subscriptions.pop(channel_id, None)

        if succeeded:
            await self._emit(
                Notification(kind=NotificationKind.UNSUBSCRIBED, channel=channel_id)
            )
        return True

    async def teardown(self) -> None:
        """Best-effort release of every open or pending subscription."""
        releases = []
        for channel_id, subscription in list(self._subscriptions.items()):
            if subscription.state is SubscriptionState.SUBSCRIBED:
                releases.append(self._teardown_subscription(channel_id))
            elif subscription.state is SubscriptionState.SUBSCRIBING:
                self._abandoned.add(channel_id)

        if releases:
            await asyncio.gather(*releases, return_exceptions=True)
        logger.info("Subscription registry torn down")

    async def probe_availability(self) -> bool | None:
        """Ask the transport whether streaming is enabled and broadcast the answer."""
        try:
            available = await self._client.is_available()
        except Exception as e:
            logger.warning("Availability probe failed: %s", e)
            return None

        await self._emit(
            Notification(kind=NotificationKind.STATUS_CHANGE, available=available)
        )
        return available

    async def drain(self) -> None:
        """Wait for in-flight persistence writes."""
        if self._persist_tasks:
            await asyncio.gather(*list(self._persist_tasks), return_exceptions=True)

    async def _teardown_subscription(self, channel_id: str) -> None:
        subscription = self._subscriptions[channel_id]
        self._subscriptions[channel_id] = replace(
            subscription, state=SubscriptionState.UNSUBSCRIBING
        )
        handle = self._handles.pop(channel_id, None)
        try:
            if handle is not None:
                await self._release(handle)
        finally:
            self._subscriptions.pop(channel_id, None)

    async def _release(self, handle: SubscriptionHandle) -> None:
        try:
            await self._client.unsubscribe(handle)
        except Exception as e:
            logger.debug("Ignoring unsubscribe failure for %s: %s", handle.channel, e)

    async def _handle_message(self, channel_id: str, message: dict) -> None:
        """Turn a transport message into a buffered LiveEvent."""
        subscription = self._subscriptions.get(channel_id)
        if subscription is None:
            logger.debug("Dropping message for %s: not subscribed", channel_id)
            return

        envelope = parse_envelope(message)
        event = LiveEvent(
            id=str(uuid.uuid4()),
            channel=subscription.channel,
            received_at=datetime.now(timezone.utc),
            replay_cursor=envelope.replay_cursor,
            payload=envelope.payload,
            raw_envelope=message,
            published_by_id=envelope.published_by_id,
            published_date=envelope.published_date,
        )
        self._buffer.push(channel_id, event)

        await self._emit(
            Notification(
                kind=NotificationKind.EVENT_RECEIVED,
                channel=channel_id,
                event=event,
            )
        )

        if self._persistence is not None:
            task = asyncio.create_task(self._persist(subscription.channel, event, envelope))
            self._persist_tasks.add(task)
            task.add_done_callback(self._persist_tasks.discard)

    async def _persist(self, channel: Channel, event: LiveEvent, envelope: Envelope) -> None:
        """Write the event log and patch the record id back onto the buffer entry."""
        try:
            record_id = await self._persistence.create_log(build_log_entry(channel, envelope))
        except PersistenceError as e:
            logger.warning(
                "Persist error for %s: %s",
                channel.id,
                e,
                extra={"context": {"channel": channel.id, "event_id": event.id}},
            )
            return
        except Exception:
            logger.exception("Unexpected persist failure for %s", channel.id)
            return

        if self._buffer.patch(channel.id, event.id, persisted_record_id=record_id) is None:
            logger.debug("Event %s left the buffer before its log record %s", event.id, record_id)

    async def _handle_transport_error(self, error: TransportError) -> None:
        """Scope a connection-level error to its channel, or broadcast it."""
        channel_id = error.channel if error.channel in self._subscriptions else None
        logger.error(
            "Transport error: %s",
            error.detail,
            extra={"context": {"channel": error.channel}},
        )
        await self._emit(
            Notification(
                kind=NotificationKind.SUBSCRIBE_ERROR,
                channel=channel_id,
                error=error.detail,
            )
        )

    async def _emit(self, notification: Notification) -> None:
        if not self._listeners:
            return

        results = await asyncio.gather(
            *[handler(notification) for handler in self._listeners],
            return_exceptions=True,
        )
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error("Error in notification handler %s: %s", i, result)
