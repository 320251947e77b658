from .event import Event, parse_events
from .update import InboundUpdate, IncomingMessage

__all__ = ["Event", "InboundUpdate", "IncomingMessage", "parse_events"]
