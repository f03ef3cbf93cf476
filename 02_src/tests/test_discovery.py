"""Tests for channel discovery."""

import json

import pytest

from event_monitor.discovery import ChannelDiscovery, channel_from_entry
from event_monitor.models import Channel, ChannelCategory


class TestChannelFromEntry:
    """Tests for channel_from_entry()."""

    def test_catalog_keys(self):
        """Test the catalog spelling of keys."""
        channel = channel_from_entry(
            {"channel": "/event/Order_Placed__e", "label": "Order Placed", "apiName": "Order_Placed__e"}
        )
        assert channel.id == "/event/Order_Placed__e"
        assert channel.name == "Order Placed"
        assert channel.category is ChannelCategory.CUSTOM

    def test_explicit_category(self):
        """Test an explicit category overrides inference."""
        channel = channel_from_entry({"id": "/event/Foo", "eventType": "Custom Platform Event"})
        assert channel.category is ChannelCategory.CUSTOM

    def test_missing_path(self):
        """Test entries without a path are rejected."""
        with pytest.raises(ValueError):
            channel_from_entry({"label": "Nothing"})


class TestChannelDiscovery:
    """Tests for ChannelDiscovery."""

    @pytest.mark.asyncio
    async def test_register_and_list(self, discovery):
        """Test registering a channel makes it discoverable."""
        await discovery.register_channel(Channel.from_path("/event/Foo__e"))
        channels = await discovery.list_channels()
        assert [c.id for c in channels] == ["/event/Foo__e"]

    @pytest.mark.asyncio
    async def test_load_catalog(self, storage, tmp_path):
        """Test loading channels from a JSON catalog, skipping bad entries."""
        catalog = tmp_path / "channels.json"
        catalog.write_text(
            json.dumps(
                [
                    {"channel": "/event/Foo__e", "label": "Foo"},
                    {"channel": "/data/AccountChangeEvent"},
                    {"label": "no path"},
                    "not an object",
                ]
            ),
            encoding="utf-8",
        )
        discovery = ChannelDiscovery(storage, catalog)

        assert await discovery.load_catalog() == 2
        assert len(await discovery.list_channels()) == 2

    @pytest.mark.asyncio
    async def test_load_catalog_missing_file(self, storage, tmp_path):
        """Test a missing catalog loads nothing."""
        discovery = ChannelDiscovery(storage, tmp_path / "missing.json")
        assert await discovery.load_catalog() == 0

    @pytest.mark.asyncio
    async def test_load_catalog_invalid_json(self, storage, tmp_path):
        """Test an unreadable catalog loads nothing."""
        catalog = tmp_path / "channels.json"
        catalog.write_text("{not json", encoding="utf-8")
        discovery = ChannelDiscovery(storage, catalog)
        assert await discovery.load_catalog() == 0
