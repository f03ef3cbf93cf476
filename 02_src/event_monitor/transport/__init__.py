"""Transport module."""

from .client import (
    ErrorHandler,
    InMemoryPubSubClient,
    IPubSubClient,
    MessageCallback,
    SubscriptionHandle,
)

__all__ = [
    "ErrorHandler",
    "InMemoryPubSubClient",
    "IPubSubClient",
    "MessageCallback",
    "SubscriptionHandle",
]
