"""Subscription-related data models."""

from dataclasses import dataclass
from enum import Enum

from .channels import Channel

# Replay cursors understood by the transport
REPLAY_TIP = -1  # only messages published after subscribe
REPLAY_ALL = -2  # everything still in the retention window


class SubscriptionState(str, Enum):
    """Lifecycle state of a channel subscription."""

    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBING = "unsubscribing"


@dataclass(frozen=True)
class Subscription:
    """Registry-owned snapshot of one channel subscription."""

    channel: Channel
    replay_cursor: int
    state: SubscriptionState
