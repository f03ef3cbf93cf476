"""Channel-related data models."""

from dataclasses import dataclass
from enum import Enum


class ChannelCategory(str, Enum):
    """Kind of pub/sub channel exposed by the platform."""

    STANDARD = "Standard"
    CHANGE_DATA_CAPTURE = "ChangeDataCapture"
    CUSTOM = "Custom"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value: "str | ChannelCategory") -> "ChannelCategory":
        """Accept either the enum value or its display label."""
        if isinstance(value, cls):
            return value
        for category in cls:
            if value in (category.value, category.label):
                return category
        raise ValueError(f"Unknown channel category: {value!r}")


_CATEGORY_LABELS = {
    ChannelCategory.STANDARD: "Standard Platform Event",
    ChannelCategory.CHANGE_DATA_CAPTURE: "Change Data Capture",
    ChannelCategory.CUSTOM: "Custom Platform Event",
}


@dataclass(frozen=True)
class Channel:
    """A named pub/sub topic, immutable once discovered."""

    id: str  # e.g. "/event/Order_Placed__e", "/data/AccountChangeEvent"
    name: str
    category: ChannelCategory
    api_name: str = ""

    def __post_init__(self):
        if not self.api_name:
            object.__setattr__(self, "api_name", _api_name_from_path(self.id))

    @classmethod
    def from_path(
        cls,
        path: str,
        name: str | None = None,
        api_name: str | None = None,
    ) -> "Channel":
        """Build a Channel, inferring the category from the path."""
        path = path.strip()
        api_name = api_name or _api_name_from_path(path)

        if path.startswith("/data/"):
            category = ChannelCategory.CHANGE_DATA_CAPTURE
        elif api_name.endswith("__e"):
            category = ChannelCategory.CUSTOM
        else:
            category = ChannelCategory.STANDARD

        return cls(id=path, name=name or api_name, category=category, api_name=api_name)


def _api_name_from_path(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]
