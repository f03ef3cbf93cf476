"""Live buffer module."""

from .live_buffer import LiveEventBuffer

__all__ = ["LiveEventBuffer"]
