"""Discovery module."""

from .catalog import ChannelDiscovery, IDiscoveryService, channel_from_entry

__all__ = ["ChannelDiscovery", "IDiscoveryService", "channel_from_entry"]
