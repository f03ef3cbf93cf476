"""Channel discovery backed by the storage catalog and an optional JSON file."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

from ..logging_config import get_logger
from ..models import Channel, ChannelCategory
from ..storage import IStorage

logger = get_logger(__name__)


class IDiscoveryService(Protocol):
    """Source of the channels an operator can subscribe to."""

    async def list_channels(self) -> list[Channel]:
        """Get all known channels."""
        ...


def channel_from_entry(entry: dict[str, Any]) -> Channel:
    """Build a Channel from a catalog entry.

    Accepts ``channel``/``id``, ``label``/``name``, ``apiName``/``api_name`` and
    ``eventType``/``category`` keys; the category is inferred from the path when
    absent.
    """
    path = entry.get("channel") or entry.get("id")
    if not path:
        raise ValueError("Catalog entry has no channel path")

    channel = Channel.from_path(
        path,
        name=entry.get("label") or entry.get("name"),
        api_name=entry.get("apiName") or entry.get("api_name"),
    )

    category = entry.get("eventType") or entry.get("category")
    if category:
        channel = replace(channel, category=ChannelCategory.parse(category))
    return channel


class ChannelDiscovery:
    """Lists channels from the storage catalog."""

    def __init__(self, storage: IStorage, catalog_path: Path | None = None):
        self._storage = storage
        self._catalog_path = catalog_path

    async def load_catalog(self) -> int:
        """Import channels from the JSON catalog file, if one exists."""
        if not self._catalog_path or not self._catalog_path.exists():
            logger.info("No channel catalog at %s", self._catalog_path)
            return 0

        try:
            with open(self._catalog_path, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to read channel catalog %s: %s", self._catalog_path, e)
            return 0

        if not isinstance(entries, list):
            logger.error("Channel catalog %s is not a list", self._catalog_path)
            return 0

        loaded = 0
        for entry in entries:
            try:
                channel = channel_from_entry(entry)
            except (AttributeError, ValueError) as e:
                logger.warning("Skipping catalog entry %r: %s", entry, e)
                continue
            await self._storage.save_channel(channel)
            loaded += 1

        logger.info("Loaded %d channel(s) from %s", loaded, self._catalog_path)
        return loaded

    async def register_channel(self, channel: Channel) -> None:
        """Add or replace a channel in the catalog."""
        await self._storage.save_channel(channel)

    async def list_channels(self) -> list[Channel]:
        """Get all known channels."""
        return await self._storage.list_channels()
