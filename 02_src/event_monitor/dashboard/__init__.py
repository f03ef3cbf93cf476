"""Dashboard module."""

from .aggregator import ENVELOPE, PAYLOAD, Dashboard, EventToggle
from .view_models import ChannelRow, ChannelTab, DashboardView, EventRow, Toast

__all__ = [
    "ENVELOPE",
    "PAYLOAD",
    "ChannelRow",
    "ChannelTab",
    "Dashboard",
    "DashboardView",
    "EventRow",
    "EventToggle",
    "Toast",
]
