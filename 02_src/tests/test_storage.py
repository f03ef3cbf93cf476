"""Tests for Storage."""

import pytest

from event_monitor.errors import PersistenceError
from event_monitor.models import Channel, ChannelCategory, EventLogEntry
from event_monitor.storage import Storage


def make_entry(channel="/event/Foo__e", replay_id="1", **overrides) -> EventLogEntry:
    fields = {
        "event_api_name": channel.rsplit("/", 1)[-1],
        "event_type": "Custom Platform Event",
        "channel": channel,
        "payload": '{"A__c": 1}',
        "header_data": '{"data": {}}',
        "replay_id": replay_id,
    }
    fields.update(overrides)
    return EventLogEntry(**fields)


class TestStorageInit:
    """Tests for Storage initialization."""

    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "channels" in tables
            assert "event_logs" in tables

    async def test_not_initialized(self):
        """Test that calls before init raise PersistenceError."""
        st = Storage(":memory:")
        with pytest.raises(PersistenceError):
            await st.create_log(make_entry())
        with pytest.raises(PersistenceError):
            await st.clear_log("/event/Foo__e")


class TestStorageEventLogs:
    """Tests for event log storage."""

    async def test_create_and_get_log(self, storage):
        """Test creating a log and reading it back."""
        entry = make_entry(
            published_by_id="005xx",
            schema_id="s1",
            entity_name="Account",
            change_type="UPDATE",
            changed_fields="Name,Phone",
            commit_timestamp="1700000000000",
        )
        record_id = await storage.create_log(entry)

        logs = await storage.get_logs()
        assert len(logs) == 1
        assert logs[0].id == record_id
        assert logs[0].entry == entry
        assert logs[0].created_at.tzinfo is not None

    async def test_record_ids_unique(self, storage):
        """Test each write gets its own id."""
        first = await storage.create_log(make_entry(replay_id="1"))
        second = await storage.create_log(make_entry(replay_id="2"))
        assert first != second

    async def test_get_logs_newest_first(self, storage):
        """Test logs come back newest first."""
        for n in range(3):
            await storage.create_log(make_entry(replay_id=str(n)))

        logs = await storage.get_logs()
        assert [log.entry.replay_id for log in logs] == ["2", "1", "0"]

    async def test_get_logs_by_channel_and_limit(self, storage):
        """Test channel filter and limit."""
        for n in range(3):
            await storage.create_log(make_entry(replay_id=str(n)))
        await storage.create_log(make_entry(channel="/event/Bar__e"))

        assert len(await storage.get_logs(channel="/event/Foo__e")) == 3
        assert len(await storage.get_logs(channel="/event/Bar__e")) == 1
        assert len(await storage.get_logs(limit=2)) == 2

    async def test_clear_log_counts(self, storage):
        """Test clear_log deletes one channel and returns the count."""
        for n in range(3):
            await storage.create_log(make_entry(replay_id=str(n)))
        await storage.create_log(make_entry(channel="/event/Bar__e"))

        assert await storage.clear_log("/event/Foo__e") == 3
        assert await storage.clear_log("/event/Foo__e") == 0
        assert len(await storage.get_logs()) == 1

    async def test_clear(self, storage):
        """Test clear drops every log."""
        await storage.create_log(make_entry())
        await storage.clear()
        assert await storage.get_logs() == []


class TestStorageChannels:
    """Tests for channel catalog storage."""

    async def test_save_and_list_channels(self, storage):
        """Test saving channels and listing them by category then name."""
        await storage.save_channel(Channel.from_path("/event/Zeta__e"))
        await storage.save_channel(Channel.from_path("/event/Alpha__e"))
        await storage.save_channel(Channel.from_path("/data/AccountChangeEvent"))

        channels = await storage.list_channels()
        assert [c.id for c in channels] == [
            "/data/AccountChangeEvent",
            "/event/Alpha__e",
            "/event/Zeta__e",
        ]
        assert channels[0].category is ChannelCategory.CHANGE_DATA_CAPTURE

    async def test_save_channel_updates_existing(self, storage):
        """Test saving the same id replaces it."""
        await storage.save_channel(Channel.from_path("/event/Foo__e", name="Old"))
        await storage.save_channel(Channel.from_path("/event/Foo__e", name="New"))

        channels = await storage.list_channels()
        assert len(channels) == 1
        assert channels[0].name == "New"
