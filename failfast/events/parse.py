from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any

from .base import Event, ObjectReference


_logger = logging.getLogger(__name__)


def parse_event(entry: dict[str, Any]) -> Event:
    involved = entry.get("involvedObject") or {}
    metadata = entry.get("metadata") or {}
    source = entry.get("source") or {}
    return Event(
        involved_object=ObjectReference(
            kind=_text(involved.get("kind")),
            name=_text(involved.get("name")),
            namespace=_text(involved.get("namespace")),
        ),
        reason=_text(entry.get("reason")),
        message=_text(entry.get("message")),
        type=_text(entry.get("type")),
        last_timestamp=parse_timestamp(entry.get("lastTimestamp")),
        name=_text(metadata.get("name")),
        namespace=_text(metadata.get("namespace")),
        count=_count(entry.get("count")),
        first_timestamp=parse_timestamp(entry.get("firstTimestamp")),
        source_component=_text(source.get("component")),
    )


def parse_events(entries: list[dict[str, Any]]) -> list[Event]:
    return [parse_event(entry) for entry in entries]


def parse_timestamp(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    text = value
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        _logger.warning("Ignoring unparseable event timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _count(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1
