from .builder import EventCheckBuilder, EventCriteria, FailFastBuilder, FailFastCheck
from .checks import Check
from .events import ClusterConnection, ClusterSettings, Event, ObjectReference, collect_events
from .waiting import FailFastError, Waiter, WaitTimeoutError

__all__ = [
    "Check",
    "ClusterConnection",
    "ClusterSettings",
    "Event",
    "EventCheckBuilder",
    "EventCriteria",
    "FailFastBuilder",
    "FailFastCheck",
    "FailFastError",
    "ObjectReference",
    "WaitTimeoutError",
    "Waiter",
    "collect_events",
]
