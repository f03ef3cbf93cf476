"""Platform event monitor core."""

from .app import Application, IApplication
from .buffer import LiveEventBuffer
from .dashboard import Dashboard, DashboardView
from .discovery import ChannelDiscovery, IDiscoveryService
from .errors import MonitorError, ParseError, PersistenceError, TransportError
from .models import (
    REPLAY_ALL,
    REPLAY_TIP,
    Channel,
    ChannelCategory,
    LiveEvent,
    Notification,
    NotificationKind,
    Subscription,
    SubscriptionState,
)
from .storage import IPersistenceGateway, IStorage, Storage
from .subscriptions import ISubscriptionRegistry, SubscriptionRegistry
from .transport import InMemoryPubSubClient, IPubSubClient
from .tree import JsonTree, TreeNode, render

__all__ = [
    # App
    "Application",
    "IApplication",
    # Components
    "ChannelDiscovery",
    "Dashboard",
    "DashboardView",
    "IDiscoveryService",
    "IPersistenceGateway",
    "IPubSubClient",
    "IStorage",
    "ISubscriptionRegistry",
    "InMemoryPubSubClient",
    "LiveEventBuffer",
    "Storage",
    "SubscriptionRegistry",
    # Tree
    "JsonTree",
    "TreeNode",
    "render",
    # Models
    "REPLAY_ALL",
    "REPLAY_TIP",
    "Channel",
    "ChannelCategory",
    "LiveEvent",
    "Notification",
    "NotificationKind",
    "Subscription",
    "SubscriptionState",
    # Errors
    "MonitorError",
    "ParseError",
    "PersistenceError",
    "TransportError",
]
