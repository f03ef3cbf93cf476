"""Error taxonomy for the event monitor.

None of these are fatal: transport errors become operator notifications,
persistence errors become log lines, parse errors fall back to raw text.
"""


class MonitorError(Exception):
    """Base class for event monitor errors."""


class TransportError(MonitorError):
    """Subscribe, unsubscribe or connection failure on the pub/sub client."""

    def __init__(self, detail: str, channel: str | None = None):
        super().__init__(detail)
        self.detail = detail
        self.channel = channel


class PersistenceError(MonitorError):
    """Write or clear failure against the event log store."""


class ParseError(MonitorError):
    """Malformed embedded structured data."""
