from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Iterable, Sequence

from . import filters
from .checks import Check
from .events.aggregate import collect_events
from .events.base import BaseEventSource, Event
from .events.parse import to_iso


AT_LEAST_ONE_EXISTS = "at least one exists"


@dataclass(frozen=True)
class EventCriteria:
    names: tuple[str, ...] | None = None
    reasons: tuple[str, ...] | None = None
    messages: tuple[str, ...] | None = None
    types: tuple[str, ...] | None = None
    kinds: tuple[str, ...] | None = None
    after: datetime | None = None

    def predicate(self) -> filters.EventPredicate:
        predicates: list[filters.EventPredicate] = []
        if self.names is not None:
            predicates.append(filters.by_object_name(*self.names))
        if self.after is not None:
            predicates.append(filters.after(self.after))
        if self.reasons is not None:
            predicates.append(filters.by_reason(*self.reasons))
        if self.messages is not None:
            predicates.append(filters.by_message(*self.messages))
        if self.types is not None:
            predicates.append(filters.by_type(*self.types))
        if self.kinds is not None:
            predicates.append(filters.by_object_kind(*self.kinds))
        return filters.all_of(*predicates)

    def matching(self, events: Iterable[Event]) -> list[Event]:
        predicate = self.predicate()
        return [event for event in events if predicate(event)]

    def describe(self) -> list[str]:
        lines: list[str] = []
        if self.kinds is not None:
            lines.append(f"obj kinds: {_format_values(self.kinds)}")
        if self.names is not None:
            lines.append(f"obj names: {_format_values(self.names)}")
        if self.reasons is not None:
            lines.append(f"event reasons: {_format_values(self.reasons)}")
        if self.messages is not None:
            lines.append(f"messages: {_format_values(self.messages)}")
        if self.types is not None:
            lines.append(f"event types: {_format_values(self.types)}")
        if self.after is not None:
            lines.append(f"after: {to_iso(self.after)}")
        return lines


class EventCheckBuilder:
    """
    Builds fail-fast checks over cluster events.

    Events can be narrowed by involved object name and kind, reason, message, type and time.
    Each setter replaces the values from a previous call of the same setter.
    """

    def __init__(self, registry: FailFastBuilder) -> None:
        self._registry = registry
        self._logger = logging.getLogger(__name__)
        self._names: tuple[str, ...] | None = None
        self._reasons: tuple[str, ...] | None = None
        self._messages: tuple[str, ...] | None = None
        self._types: tuple[str, ...] | None = None
        self._kinds: tuple[str, ...] | None = None
        self._after: datetime | None = None

    def with_names(self, *patterns: str) -> EventCheckBuilder:
        """Regular expressions for the involved object name."""
        self._names = self._values("names", patterns)
        return self

    def with_reasons(self, *reasons: str) -> EventCheckBuilder:
        """Accepted reasons (case insensitive). One of them must be equal."""
        self._reasons = self._values("reasons", reasons)
        return self

    def with_messages(self, *patterns: str) -> EventCheckBuilder:
        """Regular expressions for the message. One of them must match."""
        self._messages = self._values("messages", patterns)
        return self

    def with_types(self, *types: str) -> EventCheckBuilder:
        """Accepted event types (case insensitive), e.g. ``Warning`` or ``Normal``."""
        self._types = self._values("types", types)
        return self

    def with_kinds(self, *kinds: str) -> EventCheckBuilder:
        """Accepted involved object kinds (case insensitive), e.g. ``pod`` or ``persistentvolume``."""
        self._kinds = self._values("kinds", kinds)
        return self

    def after(self, moment: datetime) -> EventCheckBuilder:
        """Only consider events last seen strictly after ``moment``."""
        self._after = moment
        return self

    def criteria(self) -> EventCriteria:
        return EventCriteria(
            names=self._names,
            reasons=self._reasons,
            messages=self._messages,
            types=self._types,
            kinds=self._kinds,
            after=self._after,
        )

    def require_at_least_one_match(self) -> FailFastBuilder:
        """Registers a check that fires once at least one event passes every configured filter."""
        criteria = self.criteria()
        sources = self._registry.connections

        check: Check[list[Event]] = Check(
            supplier=lambda: collect_events(sources),
            condition=lambda events: bool(criteria.matching(events)),
            reason=lambda events: failure_reason(criteria, criteria.matching(events), AT_LEAST_ONE_EXISTS),
        )
        self._registry.add_check(check)
        return self._registry

    def _values(self, field: str, values: Sequence[str]) -> tuple[str, ...]:
        if not values:
            self._logger.warning("Event filter on %s configured without values; it matches nothing", field)
        return tuple(values)


class FailFastCheck:
    """Callable handed to a wait loop; returns True once any registered check fires."""

    def __init__(self, checks: Sequence[Check[Any]]) -> None:
        self._checks = tuple(checks)
        self._reason = ""
        self._logger = logging.getLogger(__name__)

    def __call__(self) -> bool:
        self._reason = ""
        for check in self._checks:
            snapshot = check.fetch()
            if check.evaluate(snapshot):
                self._reason = check.explain(snapshot)
                self._logger.info("Fail-fast check triggered")
                return True
        return False

    def reason(self) -> str:
        return self._reason


class FailFastBuilder:
    def __init__(self, connections: Iterable[BaseEventSource]) -> None:
        self._connections = tuple(connections)
        self._checks: list[Check[Any]] = []

    @property
    def connections(self) -> tuple[BaseEventSource, ...]:
        return self._connections

    def events(self) -> EventCheckBuilder:
        return EventCheckBuilder(self)

    def add_check(self, check: Check[Any]) -> FailFastBuilder:
        self._checks.append(check)
        return self

    def build(self) -> FailFastCheck:
        return FailFastCheck(self._checks)


def failure_reason(criteria: EventCriteria, events: Sequence[Event], condition: str) -> str:
    lines = [f"Following events match condition: <{condition}>"]
    for event in events:
        seen = to_iso(event.last_timestamp) if event.last_timestamp else "None"
        obj = event.involved_object
        lines.append(f"\t{seen}\t{obj.kind}/{obj.name}\t{event.message}")
    lines.append("Filter:")
    lines.extend(f"\t {line}" for line in criteria.describe())
    return "\n".join(lines) + "\n"


def _format_values(values: Sequence[str]) -> str:
    return "[" + ", ".join(values) + "]"
