"""View models derived by the dashboard."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class ChannelRow:
    """One discovered channel in the filter table."""

    id: str
    name: str
    api_name: str
    category: str
    category_label: str
    state: str
    is_subscribed: bool
    event_count: int  # messages received since subscribe, not buffer length


@dataclass
class ChannelTab:
    """One subscribed channel tab."""

    id: str
    name: str
    state: str
    buffered: int
    received: int
    active: bool


@dataclass
class EventRow:
    """One buffered event in the active tab."""

    id: str
    channel: str
    received_at: datetime
    replay_cursor: str
    published_by_id: str | None
    published_date: str | None
    persisted_record_id: str | None
    payload_expanded: bool
    envelope_expanded: bool
    payload_tree: dict[str, Any] | None = None
    envelope_tree: dict[str, Any] | None = None


@dataclass
class Toast:
    """Operator-facing notice."""

    title: str
    message: str
    variant: str  # "success", "info", "error"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class DashboardView:
    """Everything the display surface needs for one redraw."""

    channels: list[ChannelRow]
    total_count: int
    filtered_count: int
    search_term: str
    category: str | None
    tabs: list[ChannelTab]
    active_tab: str | None
    events: list[EventRow]
    transport_available: bool | None
    error: str | None
    loading: bool

    @property
    def has_subscriptions(self) -> bool:
        return bool(self.tabs)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
