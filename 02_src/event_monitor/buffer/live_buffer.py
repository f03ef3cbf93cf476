"""LiveEventBuffer implementation."""

import dataclasses

from ..config import BUFFER_CAPACITY
from ..logging_config import get_logger
from ..models import LiveEvent

logger = get_logger(__name__)


class LiveEventBuffer:
    """Per-channel, newest-first, bounded collection of received events.

    Entries past capacity are evicted silently, persisted or not.
    """

    def __init__(self, capacity: int = BUFFER_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._events: dict[str, list[LiveEvent]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, channel_id: str, event: LiveEvent) -> list[LiveEvent]:
        """Prepend an event; return whatever fell off the end."""
        updated = [event, *self._events.get(channel_id, [])]
        evicted = updated[self._capacity:]
        self._events[channel_id] = updated[: self._capacity]

        if evicted:
            logger.debug(
                "Evicted %d event(s) from %s", len(evicted), channel_id
            )
        return evicted

    def patch(self, channel_id: str, event_id: str, **fields) -> LiveEvent | None:
        """Replace the event with the given id; None if it is no longer buffered."""
        events = self._events.get(channel_id)
        if not events:
            return None

        for idx, event in enumerate(events):
            if event.id == event_id:
                patched = dataclasses.replace(event, **fields)
                self._events[channel_id] = [*events[:idx], patched, *events[idx + 1 :]]
                return patched
        return None

    def get(self, channel_id: str) -> list[LiveEvent]:
        """Get the channel's events, newest first."""
        return list(self._events.get(channel_id, []))

    def find(self, event_id: str) -> LiveEvent | None:
        """Find an event in any channel."""
        for events in self._events.values():
            for event in events:
                if event.id == event_id:
                    return event
        return None

    def count(self, channel_id: str) -> int:
        return len(self._events.get(channel_id, []))

    def channels(self) -> list[str]:
        return list(self._events)

    def clear(self, channel_id: str) -> int:
        """Drop a channel's events and return how many there were."""
        return len(self._events.pop(channel_id, []))

    def clear_all(self) -> None:
        self._events.clear()
