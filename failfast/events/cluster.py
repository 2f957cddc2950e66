from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import httpx

from .base import BaseEventSource, Event
from .parse import parse_events


@dataclass
class ClusterSettings:
    name: str
    url: str
    token: str | None
    namespace: str | None
    verify_tls: bool
    timeout_seconds: int
    user_agent: str
    page_size: int


class ClusterConnection(BaseEventSource):
    def __init__(self, settings: ClusterSettings) -> None:
        self._settings = settings
        self._logger = logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return self._settings.name

    def list_events(self) -> list[Event]:
        events: list[Event] = []
        headers = {
            "Accept": "application/json",
            "User-Agent": self._settings.user_agent,
        }
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"

        url = _events_url(self._settings.url, self._settings.namespace)
        token: str | None = None

        with httpx.Client(
            timeout=self._settings.timeout_seconds,
            verify=self._settings.verify_tls,
        ) as client:
            while True:
                params: dict[str, Any] = {}
                if self._settings.page_size > 0:
                    params["limit"] = self._settings.page_size
                if token:
                    params["continue"] = token

                response = client.get(url, headers=headers, params=params)
                response.raise_for_status()
                payload = response.json()

                events.extend(parse_events(payload.get("items") or []))
                token = (payload.get("metadata") or {}).get("continue")
                if not token:
                    break

        self._logger.debug("Cluster %s returned %s events", self._settings.name, len(events))
        return events


def _events_url(base_url: str, namespace: str | None) -> str:
    base = base_url.rstrip("/")
    if namespace:
        return f"{base}/api/v1/namespaces/{namespace}/events"
    return f"{base}/api/v1/events"
