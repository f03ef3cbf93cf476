"""Live event data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .channels import Channel


@dataclass(frozen=True)
class LiveEvent:
    """A message received on a subscribed channel, as held by the live buffer."""

    id: str
    channel: Channel
    received_at: datetime
    replay_cursor: str
    payload: Any
    raw_envelope: Any
    published_by_id: str | None = None
    published_date: str | None = None
    persisted_record_id: str | None = None  # patched in once the log write lands


@dataclass(frozen=True)
class ChangeEventHeader:
    """Header block of a change-capture payload."""

    entity_name: str | None
    change_type: str | None
    changed_fields: tuple[str, ...]
    commit_timestamp: str | None


@dataclass
class EventLogEntry:
    """Fields handed to the persistence gateway for one received message."""

    event_api_name: str
    event_type: str  # channel category label
    channel: str
    payload: str  # JSON text
    header_data: str  # full envelope, JSON text
    replay_id: str
    published_by_id: str | None = None
    published_date: str | None = None
    schema_id: str | None = None
    entity_name: str | None = None
    change_type: str | None = None
    changed_fields: str | None = None  # comma-joined
    commit_timestamp: str | None = None


@dataclass
class EventLogRecord:
    """A persisted event log row."""

    id: str
    entry: EventLogEntry
    created_at: datetime
