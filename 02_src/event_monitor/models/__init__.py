"""Core data models for the event monitor."""

from .channels import Channel, ChannelCategory
from .events import ChangeEventHeader, EventLogEntry, EventLogRecord, LiveEvent
from .notifications import Notification, NotificationKind
from .subscriptions import REPLAY_ALL, REPLAY_TIP, Subscription, SubscriptionState

__all__ = [
    # Channels
    "Channel",
    "ChannelCategory",
    # Subscriptions
    "REPLAY_ALL",
    "REPLAY_TIP",
    "Subscription",
    "SubscriptionState",
    # Events
    "LiveEvent",
    "ChangeEventHeader",
    "EventLogEntry",
    "EventLogRecord",
    # Notifications
    "Notification",
    "NotificationKind",
]
