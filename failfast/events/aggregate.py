from __future__ import annotations

import logging
from typing import Iterable

from .base import BaseEventSource, Event


def collect_events(sources: Iterable[BaseEventSource]) -> list[Event]:
    """
    Concatenates the current events of every source in the given order.
    Errors raised by a source are not caught; a single failing source fails the whole call.
    """
    logger = logging.getLogger(__name__)
    events: list[Event] = []
    for source in sources:
        events.extend(source.list_events())
    logger.debug("Collected %s events", len(events))
    return events
