from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Callable, Iterable

from .events.base import Event


EventPredicate = Callable[[Event], bool]


def by_type(*types: str) -> EventPredicate:
    """Events whose type is one of ``types`` (case insensitive), e.g. ``Warning`` or ``Normal``."""
    return lambda event: _in_case_insensitive(event.type, types)


def by_object_kind(*kinds: str) -> EventPredicate:
    """Events whose involved object kind is one of ``kinds`` (case insensitive)."""
    return lambda event: _in_case_insensitive(event.involved_object.kind, kinds)


def by_reason(*reasons: str) -> EventPredicate:
    """Events whose reason is one of ``reasons`` (case insensitive)."""
    return lambda event: _in_case_insensitive(event.reason, reasons)


def by_object_name(*patterns: str) -> EventPredicate:
    """Events whose involved object name fully matches one of the regular expressions."""
    return lambda event: _full_match_any(event.involved_object.name, patterns)


def by_message(*patterns: str) -> EventPredicate:
    """Events whose message fully matches one of the regular expressions."""
    return lambda event: _full_match_any(event.message, patterns)


def after(moment: datetime) -> EventPredicate:
    """Events last seen strictly after ``moment``."""
    bound = _as_utc(moment)

    def predicate(event: Event) -> bool:
        return event.last_timestamp is not None and _as_utc(event.last_timestamp) > bound

    return predicate


def in_any_window(*moments: datetime) -> EventPredicate:
    """
    Events last seen in any of the given time windows.

    ``moments`` is read in pairs: from, until, from, until, ... An event must be seen
    strictly after ``from`` and no later than ``until``. A trailing unpaired value is ignored.
    Cluster timestamps carry a zone, so naive values are taken as UTC.
    """
    bounds = [_as_utc(moment) for moment in moments]
    windows = list(zip(bounds[0::2], bounds[1::2]))

    def predicate(event: Event) -> bool:
        if event.last_timestamp is None:
            return False
        seen = _as_utc(event.last_timestamp)
        return any(start < seen <= until for start, until in windows)

    return predicate


def all_of(*predicates: EventPredicate) -> EventPredicate:
    return lambda event: all(predicate(event) for predicate in predicates)


def any_of(*predicates: EventPredicate) -> EventPredicate:
    return lambda event: any(predicate(event) for predicate in predicates)


def _in_case_insensitive(value: str, candidates: Iterable[str]) -> bool:
    field = value.lower()
    return any(field == candidate.lower() for candidate in candidates)


def _full_match_any(value: str, patterns: Iterable[str]) -> bool:
    # re caches compiled patterns; a bad pattern raises re.error here, on first use
    return any(re.fullmatch(pattern, value) is not None for pattern in patterns)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
