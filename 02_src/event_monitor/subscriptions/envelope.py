"""Inbound envelope parsing."""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..models import ChangeEventHeader, Channel, EventLogEntry


@dataclass(frozen=True)
class Envelope:
    """The parts of a transport message the monitor cares about."""

    payload: Any
    replay_cursor: str
    schema: str
    published_by_id: str | None
    published_date: str | None
    change_header: ChangeEventHeader | None
    raw: Any


def parse_envelope(message: Any) -> Envelope:
    """Extract payload and metadata; missing sections default to empty."""
    data = _section(message, "data")
    payload = data.get("payload")
    if payload is None:
        payload = {}
    event = _section(data, "event")

    replay_id = event.get("replayId")
    fields = payload if isinstance(payload, Mapping) else {}

    return Envelope(
        payload=payload,
        replay_cursor="" if replay_id is None else str(replay_id),
        schema=str(data.get("schema") or ""),
        published_by_id=_text(fields.get("CreatedById")),
        published_date=_text(fields.get("CreatedDate")),
        change_header=_change_header(fields.get("ChangeEventHeader")),
        raw=message,
    )


def build_log_entry(channel: Channel, envelope: Envelope) -> EventLogEntry:
    """Flatten an envelope into the fields the event log stores."""
    header = envelope.change_header
    return EventLogEntry(
        event_api_name=channel.api_name,
        event_type=channel.category.label,
        channel=channel.id,
        payload=json.dumps(envelope.payload, default=str),
        header_data=json.dumps(envelope.raw, default=str),
        replay_id=envelope.replay_cursor,
        published_by_id=envelope.published_by_id,
        published_date=envelope.published_date,
        schema_id=envelope.schema or None,
        entity_name=header.entity_name if header else None,
        change_type=header.change_type if header else None,
        changed_fields=(
            ",".join(header.changed_fields) if header and header.changed_fields else None
        ),
        commit_timestamp=header.commit_timestamp if header else None,
    )


def _section(container: Any, name: str) -> Mapping:
    if not isinstance(container, Mapping):
        return {}
    section = container.get(name)
    return section if isinstance(section, Mapping) else {}


def _change_header(header: Any) -> ChangeEventHeader | None:
    if not isinstance(header, Mapping):
        return None

    changed = header.get("changedFields")
    return ChangeEventHeader(
        entity_name=_text(header.get("entityName")),
        change_type=_text(header.get("changeType")),
        changed_fields=tuple(str(f) for f in changed) if isinstance(changed, list) else (),
        commit_timestamp=_text(header.get("commitTimestamp")),
    )


def _text(value: Any) -> str | None:
    """Metadata fields are loosely typed on the wire; keep them as text."""
    if value is None or value == "":
        return None
    return str(value)
