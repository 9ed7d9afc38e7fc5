"""Event delivery for Counsel."""

from counsel.events.bus import EventBus, EventSink

__all__ = ["EventBus", "EventSink"]
