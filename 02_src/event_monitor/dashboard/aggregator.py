"""Dashboard aggregator: discovery + registry + buffer into one view model."""

from collections import Counter, deque
from dataclasses import dataclass

from ..buffer import LiveEventBuffer
from ..discovery import IDiscoveryService
from ..logging_config import get_logger
from ..models import (
    REPLAY_TIP,
    Channel,
    ChannelCategory,
    Notification,
    NotificationKind,
    SubscriptionState,
)
from ..storage import IPersistenceGateway
from ..subscriptions import SubscriptionRegistry
from ..tree import JsonTree
from .view_models import ChannelRow, ChannelTab, DashboardView, EventRow, Toast

logger = get_logger(__name__)

PAYLOAD = "payload"
ENVELOPE = "envelope"
SECTIONS = (PAYLOAD, ENVELOPE)


@dataclass
class EventToggle:
    """Which sections of an event row are open."""

    payload: bool = True
    envelope: bool = False


class Dashboard:
    """Holds operator-facing state and derives the DashboardView from it."""

    def __init__(
        self,
        discovery: IDiscoveryService,
        registry: SubscriptionRegistry,
        buffer: LiveEventBuffer,
        persistence: IPersistenceGateway,
        toast_limit: int = 50,
    ):
        self._discovery = discovery
        self._registry = registry
        self._buffer = buffer
        self._persistence = persistence

        self._channels: list[Channel] = []
        self._search_term = ""
        self._category: ChannelCategory | None = None
        self._active_tab: str | None = None
        self._received: Counter[str] = Counter()
        self._toggles: dict[str, EventToggle] = {}
        self._trees: dict[tuple[str, str], JsonTree] = {}
        self._toasts: deque[Toast] = deque(maxlen=toast_limit)
        self._transport_available: bool | None = None
        self._error: str | None = None
        self._loading = True

        registry.add_listener(self.handle_notification)

    @property
    def active_tab(self) -> str | None:
        return self._active_tab

    # Discovery / filters
    async def refresh(self) -> None:
        """Reload channels from discovery."""
        self._loading = True
        self._error = None
        try:
            self._channels = await self._discovery.list_channels()
        except Exception as e:
            logger.error("Failed to load channels: %s", e)
            self._error = str(e) or "Failed to load channels."
        finally:
            self._loading = False

    def channel(self, channel_id: str) -> Channel | None:
        for channel in self._channels:
            if channel.id == channel_id:
                return channel
        subscription = self._registry.get(channel_id)
        return subscription.channel if subscription else None

    def set_search(self, term: str | None) -> None:
        self._search_term = term or ""

    def set_category(self, category: str | ChannelCategory | None) -> None:
        """Filter by category; None or "All" clears the filter."""
        if category is None or category == "All":
            self._category = None
        else:
            self._category = ChannelCategory.parse(category)

    # Subscriptions
    async def subscribe(self, channel_id: str, replay_cursor: int = REPLAY_TIP) -> bool:
        """Subscribe to a discovered channel. Raises KeyError for unknown channels."""
        channel = self.channel(channel_id)
        if channel is None:
            raise KeyError(channel_id)

        if self._active_tab is None:
            self._active_tab = channel_id
        return await self._registry.request_subscribe(channel, replay_cursor)

    async def unsubscribe(self, channel_id: str) -> bool:
        return await self._registry.request_unsubscribe(channel_id)

    def select_tab(self, channel_id: str) -> None:
        if self._registry.state(channel_id) is SubscriptionState.UNSUBSCRIBED:
            raise KeyError(channel_id)
        self._active_tab = channel_id

    # Event rows
    def toggle_payload(self, event_id: str) -> bool:
        return self._toggle(event_id, PAYLOAD)

    def toggle_envelope(self, event_id: str) -> bool:
        return self._toggle(event_id, ENVELOPE)

    def event_tree(self, event_id: str, section: str = PAYLOAD) -> JsonTree:
        """Tree instance for one section of a buffered event, kept across redraws."""
        if section not in SECTIONS:
            raise ValueError(f"Unknown section: {section!r}")
        event = self._buffer.find(event_id)
        if event is None:
            raise KeyError(event_id)

        key = (event_id, section)
        if key not in self._trees:
            value = event.payload if section == PAYLOAD else event.raw_envelope
            self._trees[key] = JsonTree(value)
        return self._trees[key]

    def toggle_tree_node(self, event_id: str, section: str, path: list | tuple) -> bool:
        return self.event_tree(event_id, section).toggle(tuple(path))

    async def clear_logs(self, channel_id: str | None = None) -> int | None:
        """Delete the persisted trail and the live buffer for a channel.

        Returns the number of deleted log records, or None when the clear failed.
        """
        channel_id = channel_id or self._active_tab
        if not channel_id:
            return None

        try:
            count = await self._persistence.clear_log(channel_id)
        except Exception as e:
            logger.error("Failed to clear logs for %s: %s", channel_id, e)
            self._toast("Error", str(e) or "Clear failed", "error")
            return None

        self._buffer.clear(channel_id)
        self._prune()
        self._toast("Cleared", f"Deleted {count} log records", "info")
        return count

    # Notifications
    async def handle_notification(self, notification: Notification) -> None:
        channel_id = notification.channel

        if notification.kind is NotificationKind.SUBSCRIBED:
            self._toast("Subscribed", f"Listening on {channel_id}", "success")

        elif notification.kind is NotificationKind.UNSUBSCRIBED:
            if self._active_tab == channel_id:
                self._reassign_active_tab()

        elif notification.kind is NotificationKind.SUBSCRIBE_ERROR:
            self._toast(
                "Subscription Error",
                f"{channel_id or 'transport'}: {notification.error}",
                "error",
            )
            if (
                channel_id is not None
                and self._active_tab == channel_id
                and self._registry.state(channel_id) is SubscriptionState.UNSUBSCRIBED
            ):
                self._reassign_active_tab()

        elif notification.kind is NotificationKind.EVENT_RECEIVED:
            self._received[channel_id] += 1
            if notification.event is not None:
                self._toggles[notification.event.id] = EventToggle()
            if len(self._toggles) > self._buffered_total():
                self._prune()

        elif notification.kind is NotificationKind.STATUS_CHANGE:
            self._transport_available = notification.available

    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    def drain_toasts(self) -> list[Toast]:
        """Return and forget pending toasts."""
        toasts = list(self._toasts)
        self._toasts.clear()
        return toasts

    def reset(self) -> None:
        """Forget per-event state and counters; channels and filters stay."""
        self._received.clear()
        self._toggles.clear()
        self._trees.clear()
        self._toasts.clear()
        self._active_tab = None

    # View
    def channel_rows(
        self,
        search_term: str = "",
        category: ChannelCategory | None = None,
    ) -> list[ChannelRow]:
        """Discovered channels matching a name filter and category."""
        term = search_term.lower()
        rows = []
        for channel in self._channels:
            matches_name = (
                not term
                or term in channel.api_name.lower()
                or term in (channel.name or "").lower()
            )
            matches_type = category is None or channel.category is category
            if not (matches_name and matches_type):
                continue

            state = self._registry.state(channel.id)
            rows.append(
                ChannelRow(
                    id=channel.id,
                    name=channel.name,
                    api_name=channel.api_name,
                    category=channel.category.value,
                    category_label=channel.category.label,
                    state=state.value,
                    is_subscribed=state is not SubscriptionState.UNSUBSCRIBED,
                    event_count=self._received[channel.id],
                )
            )
        return rows

    def view(self) -> DashboardView:
        """Derive the view model from current state."""
        rows = self.channel_rows(self._search_term, self._category)

        tabs = [
            ChannelTab(
                id=subscription.channel.id,
                name=subscription.channel.name,
                state=subscription.state.value,
                buffered=self._buffer.count(subscription.channel.id),
                received=self._received[subscription.channel.id],
                active=subscription.channel.id == self._active_tab,
            )
            for subscription in self._registry.subscriptions()
        ]

        events = []
        if self._active_tab:
            for event in self._buffer.get(self._active_tab):
                toggle = self._toggles.get(event.id, EventToggle(payload=False))
                events.append(
                    EventRow(
                        id=event.id,
                        channel=event.channel.id,
                        received_at=event.received_at,
                        replay_cursor=event.replay_cursor,
                        published_by_id=event.published_by_id,
                        published_date=event.published_date,
                        persisted_record_id=event.persisted_record_id,
                        payload_expanded=toggle.payload,
                        envelope_expanded=toggle.envelope,
                        payload_tree=(
                            self.event_tree(event.id, PAYLOAD).to_dict()
                            if toggle.payload
                            else None
                        ),
                        envelope_tree=(
                            self.event_tree(event.id, ENVELOPE).to_dict()
                            if toggle.envelope
                            else None
                        ),
                    )
                )

        return DashboardView(
            channels=rows,
            total_count=len(self._channels),
            filtered_count=len(rows),
            search_term=self._search_term,
            category=self._category.value if self._category else None,
            tabs=tabs,
            active_tab=self._active_tab,
            events=events,
            transport_available=self._transport_available,
            error=self._error,
            loading=self._loading,
        )

    def _toggle(self, event_id: str, section: str) -> bool:
        if self._buffer.find(event_id) is None:
            raise KeyError(event_id)

        toggle = self._toggles.setdefault(event_id, EventToggle(payload=False))
        expanded = not getattr(toggle, section)
        setattr(toggle, section, expanded)
        return expanded

    def _reassign_active_tab(self) -> None:
        subscriptions = self._registry.subscriptions()
        self._active_tab = subscriptions[0].channel.id if subscriptions else None

    def _buffered_total(self) -> int:
        return sum(self._buffer.count(channel_id) for channel_id in self._buffer.channels())

    def _prune(self) -> None:
        """Drop toggles and trees of events that left the buffer."""
        live = {
            event.id
            for channel_id in self._buffer.channels()
            for event in self._buffer.get(channel_id)
        }
        self._toggles = {k: v for k, v in self._toggles.items() if k in live}
        self._trees = {k: v for k, v in self._trees.items() if k[0] in live}

    def _toast(self, title: str, message: str, variant: str) -> None:
        self._toasts.append(Toast(title=title, message=message, variant=variant))
