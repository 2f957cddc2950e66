from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ObjectReference:
    kind: str
    name: str
    namespace: str = ""


@dataclass(frozen=True)
class Event:
    involved_object: ObjectReference
    reason: str
    message: str
    type: str
    last_timestamp: datetime | None
    name: str = ""
    namespace: str = ""
    count: int = 1
    first_timestamp: datetime | None = None
    source_component: str = ""


class BaseEventSource(ABC):
    @abstractmethod
    def list_events(self) -> list[Event]:
        """Return every event currently known to the source."""
        raise NotImplementedError
