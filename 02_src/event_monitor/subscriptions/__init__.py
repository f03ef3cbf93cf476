"""Subscriptions module."""

from .envelope import Envelope, build_log_entry, parse_envelope
from .registry import ISubscriptionRegistry, NotificationHandler, SubscriptionRegistry

__all__ = [
    "Envelope",
    "ISubscriptionRegistry",
    "NotificationHandler",
    "SubscriptionRegistry",
    "build_log_entry",
    "parse_envelope",
]
