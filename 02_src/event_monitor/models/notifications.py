"""Registry lifecycle notifications."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .events import LiveEvent


class NotificationKind(str, Enum):
    """Lifecycle events emitted by the subscription registry."""

    SUBSCRIBED = "subscribed"
    SUBSCRIBE_ERROR = "subscribe_error"
    UNSUBSCRIBED = "unsubscribed"
    EVENT_RECEIVED = "event_received"
    STATUS_CHANGE = "status_change"


@dataclass
class Notification:
    """A single registry notification.

    ``channel`` is None for broadcast transport errors and status changes.
    """

    kind: NotificationKind
    channel: str | None = None
    error: str | None = None
    event: LiveEvent | None = None
    available: bool | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
