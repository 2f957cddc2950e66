from .aggregate import collect_events
from .base import BaseEventSource, Event, ObjectReference
from .cluster import ClusterConnection, ClusterSettings
from .parse import parse_event, parse_events, parse_timestamp

__all__ = [
    "BaseEventSource",
    "ClusterConnection",
    "ClusterSettings",
    "Event",
    "ObjectReference",
    "collect_events",
    "parse_event",
    "parse_events",
    "parse_timestamp",
]
