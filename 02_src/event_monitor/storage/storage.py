"""SQLite storage implementation."""

import uuid
from dataclasses import fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import PersistenceError
from ..models import Channel, ChannelCategory, EventLogEntry, EventLogRecord

_LOG_COLUMNS = [f.name for f in fields(EventLogEntry)]


class IPersistenceGateway(Protocol):
    """Durable trail of received events."""

    async def create_log(self, entry: EventLogEntry) -> str:
        """Persist one event log entry and return its record id."""
        ...

    async def clear_log(self, channel: str) -> int:
        """Delete a channel's persisted logs and return how many were removed."""
        ...


class IStorage(IPersistenceGateway, Protocol):
    """Persistent storage for all system data (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Event logs
    async def get_logs(
        self, channel: str | None = None, limit: int = 100
    ) -> list[EventLogRecord]:
        """Get event logs (newest first), optionally for one channel."""
        ...

    # Channels
    async def save_channel(self, channel: Channel) -> None:
        """Save a channel to the catalog."""
        ...

    async def list_channels(self) -> list[Channel]:
        """Get all catalogued channels."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all event logs."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    # Event logs
    async def create_log(self, entry: EventLogEntry) -> str:
        """Persist one event log entry and return its record id."""
        if not self._conn:
            raise PersistenceError("Storage not initialized")

        record_id = str(uuid.uuid4())
        columns = ["id", *_LOG_COLUMNS, "created_at"]
        placeholders = ", ".join("?" * len(columns))
        values = [
            record_id,
            *(getattr(entry, name) for name in _LOG_COLUMNS),
            datetime.now(timezone.utc).isoformat(),
        ]

        try:
            await self._conn.execute(
                f"INSERT INTO event_logs ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            await self._conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to write event log: {e}") from e

        return record_id

    async def clear_log(self, channel: str) -> int:
        """Delete a channel's persisted logs and return how many were removed."""
        if not self._conn:
            raise PersistenceError("Storage not initialized")

        try:
            cursor = await self._conn.execute(
                "DELETE FROM event_logs WHERE channel = ?",
                (channel,),
            )
            await self._conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to clear event logs: {e}") from e

        return cursor.rowcount

    async def get_logs(
        self, channel: str | None = None, limit: int = 100
    ) -> list[EventLogRecord]:
        """Get event logs (newest first), optionally for one channel."""
        if not self._conn:
            raise PersistenceError("Storage not initialized")

        where_clause = "WHERE channel = ?" if channel else ""
        params: list = [channel] if channel else []
        params.append(limit)

        cursor = await self._conn.execute(
            f"""
            SELECT id, {', '.join(_LOG_COLUMNS)}, created_at
            FROM event_logs
            {where_clause}
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            params,
        )
        rows = await cursor.fetchall()

        return [
            EventLogRecord(
                id=row[0],
                entry=EventLogEntry(**dict(zip(_LOG_COLUMNS, row[1:-1]))),
                created_at=datetime.fromisoformat(row[-1]).replace(tzinfo=timezone.utc),
            )
            for row in rows
        ]

    # Channels
    async def save_channel(self, channel: Channel) -> None:
        """Save a channel to the catalog."""
        if not self._conn:
            raise PersistenceError("Storage not initialized")

        await self._conn.execute(
            """
            INSERT OR REPLACE INTO channels (id, name, api_name, category)
            VALUES (?, ?, ?, ?)
            """,
            (channel.id, channel.name, channel.api_name, channel.category.value),
        )
        await self._conn.commit()

    async def list_channels(self) -> list[Channel]:
        """Get all catalogued channels."""
        if not self._conn:
            raise PersistenceError("Storage not initialized")

        cursor = await self._conn.execute(
            """
            SELECT id, name, api_name, category
            FROM channels
            ORDER BY category, name
            """
        )
        rows = await cursor.fetchall()

        return [
            Channel(
                id=row[0],
                name=row[1],
                api_name=row[2],
                category=ChannelCategory(row[3]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all event logs."""
        if not self._conn:
            raise PersistenceError("Storage not initialized")

        await self._conn.execute("DELETE FROM event_logs")
        await self._conn.commit()
