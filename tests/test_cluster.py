from __future__ import annotations

from datetime import datetime, timezone
import unittest
from unittest.mock import Mock, patch

import httpx

from failfast.events.cluster import ClusterConnection, ClusterSettings
from failfast.events.parse import parse_event


def _settings(namespace: str | None = "testing", page_size: int = 2) -> ClusterSettings:
    return ClusterSettings(
        name="master",
        url="https://api.example.com:6443/",
        token="secret",
        namespace=namespace,
        verify_tls=False,
        timeout_seconds=5,
        user_agent="failfast/test",
        page_size=page_size,
    )


def _item(name: str) -> dict:
    return {
        "kind": "Event",
        "metadata": {"name": f"{name}.abc", "namespace": "testing"},
        "involvedObject": {"kind": "Pod", "name": name, "namespace": "testing"},
        "reason": "BackOff",
        "message": "Back-off restarting failed container",
        "type": "Warning",
        "count": 3,
        "firstTimestamp": "2020-05-22T06:17:43Z",
        "lastTimestamp": "2020-05-22T06:20:00Z",
        "source": {"component": "kubelet"},
    }


def _response(url: str, payload: dict, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=payload, request=httpx.Request("GET", url))


class ClusterConnectionTests(unittest.TestCase):
    def test_follows_continue_token(self) -> None:
        url = "https://api.example.com:6443/api/v1/namespaces/testing/events"
        pages = [
            _response(url, {"items": [_item("a"), _item("b")], "metadata": {"continue": "next"}}),
            _response(url, {"items": [_item("c")], "metadata": {}}),
        ]
        with patch("httpx.Client") as mock_client:
            instance = mock_client.return_value.__enter__.return_value
            instance.get = Mock(side_effect=pages)
            events = ClusterConnection(_settings()).list_events()

        self.assertEqual([event.involved_object.name for event in events], ["a", "b", "c"])
        first, second = instance.get.call_args_list
        self.assertEqual(first.args[0], url)
        self.assertEqual(first.kwargs["params"], {"limit": 2})
        self.assertEqual(second.kwargs["params"], {"limit": 2, "continue": "next"})
        self.assertEqual(first.kwargs["headers"]["Authorization"], "Bearer secret")
        self.assertEqual(mock_client.call_args.kwargs["verify"], False)

    def test_all_namespaces_without_paging(self) -> None:
        url = "https://api.example.com:6443/api/v1/events"
        with patch("httpx.Client") as mock_client:
            instance = mock_client.return_value.__enter__.return_value
            instance.get = Mock(return_value=_response(url, {"items": None}))
            events = ClusterConnection(_settings(namespace=None, page_size=0)).list_events()

        self.assertEqual(events, [])
        self.assertEqual(instance.get.call_args.args[0], url)
        self.assertEqual(instance.get.call_args.kwargs["params"], {})

    def test_http_errors_propagate(self) -> None:
        url = "https://api.example.com:6443/api/v1/namespaces/testing/events"
        with patch("httpx.Client") as mock_client:
            instance = mock_client.return_value.__enter__.return_value
            instance.get = Mock(return_value=_response(url, {"message": "forbidden"}, status=403))
            with self.assertRaises(httpx.HTTPStatusError):
                ClusterConnection(_settings()).list_events()


class ParseEventTests(unittest.TestCase):
    def test_maps_wire_fields(self) -> None:
        event = parse_event(_item("web-1"))
        self.assertEqual(event.involved_object.kind, "Pod")
        self.assertEqual(event.involved_object.name, "web-1")
        self.assertEqual(event.involved_object.namespace, "testing")
        self.assertEqual(event.reason, "BackOff")
        self.assertEqual(event.type, "Warning")
        self.assertEqual(event.count, 3)
        self.assertEqual(event.name, "web-1.abc")
        self.assertEqual(event.source_component, "kubelet")
        self.assertEqual(event.last_timestamp, datetime(2020, 5, 22, 6, 20, tzinfo=timezone.utc))

    def test_missing_fields(self) -> None:
        event = parse_event({"involvedObject": {"kind": "Pod"}, "lastTimestamp": None})
        self.assertEqual(event.involved_object.name, "")
        self.assertEqual(event.message, "")
        self.assertIsNone(event.last_timestamp)
        self.assertEqual(event.count, 1)

    def test_unparseable_timestamp_is_absent(self) -> None:
        with self.assertLogs("failfast.events.parse", level="WARNING"):
            event = parse_event({"lastTimestamp": "yesterday"})
        self.assertIsNone(event.last_timestamp)

    def test_event_is_immutable(self) -> None:
        event = parse_event(_item("web-1"))
        with self.assertRaises(AttributeError):
            event.reason = "Changed"  # type: ignore[misc]
