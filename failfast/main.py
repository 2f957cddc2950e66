from __future__ import annotations

import argparse
from datetime import datetime, timezone
import logging
import sys

from .builder import FailFastBuilder
from .config import Config, load_config
from .events.cluster import ClusterConnection, ClusterSettings
from .events.parse import parse_timestamp
from .waiting import FailFastError, Waiter, WaitTimeoutError


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.config, _parse_overrides(args.set))
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}")
    if args.timeout is not None:
        config.waiting.timeout_seconds = args.timeout
    if not config.clusters:
        raise SystemExit("At least one cluster is required. Add clusters entries to failfast.yaml.")

    registry = FailFastBuilder(_build_connections(config))
    _configure_event_check(registry, args)
    fail_fast = registry.build()

    if args.once:
        if fail_fast():
            print(fail_fast.reason(), file=sys.stderr)
            return 1
        logger.info("No matching events")
        return 0

    waiter = Waiter(
        timeout_seconds=config.waiting.timeout_seconds,
        interval_seconds=config.waiting.poll_interval_seconds,
        fail_fast=fail_fast,
    )
    try:
        # nothing else to wait for; only a matching event or the timeout ends the watch
        waiter.wait_for(lambda: False, description="matching events")
    except FailFastError as exc:
        print(exc.reason, file=sys.stderr)
        return 1
    except WaitTimeoutError:
        logger.info("No matching events within %ss", config.waiting.timeout_seconds)
    return 0


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch cluster events and fail fast when one matches")
    parser.add_argument("--config", default=None, help="User-local config file (default: failfast.yaml in project root)")
    parser.add_argument("--set", action="append", default=[], metavar="KEY=VALUE", help="Override a config value")
    parser.add_argument("--kind", action="append", help="Involved object kind (case insensitive)")
    parser.add_argument("--name", action="append", help="Regex for the involved object name")
    parser.add_argument("--reason", action="append", help="Event reason (case insensitive)")
    parser.add_argument("--message", action="append", help="Regex for the event message")
    parser.add_argument("--type", action="append", help="Event type, e.g. Warning (case insensitive)")
    parser.add_argument("--since", default=None, help="Only events last seen after this ISO-8601 time (default: now)")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds to watch before giving up")
    parser.add_argument("--once", action="store_true", help="Check once and exit")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")


def _parse_overrides(entries: list[str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"--set expects KEY=VALUE, got {entry!r}")
        overrides[key.strip()] = value
    return overrides


def _build_connections(config: Config) -> list[ClusterConnection]:
    settings = config.settings
    return [
        ClusterConnection(
            ClusterSettings(
                name=cluster.name,
                url=cluster.url,
                token=cluster.token,
                namespace=cluster.namespace,
                verify_tls=cluster.verify_tls,
                timeout_seconds=settings.request_timeout_seconds,
                user_agent=settings.user_agent,
                page_size=settings.page_size,
            )
        )
        for cluster in config.clusters
    ]


def _configure_event_check(registry: FailFastBuilder, args: argparse.Namespace) -> None:
    builder = registry.events().after(_parse_since(args.since))
    if args.kind:
        builder.with_kinds(*args.kind)
    if args.name:
        builder.with_names(*args.name)
    if args.reason:
        builder.with_reasons(*args.reason)
    if args.message:
        builder.with_messages(*args.message)
    if args.type:
        builder.with_types(*args.type)
    builder.require_at_least_one_match()


def _parse_since(value: str | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    parsed = parse_timestamp(value)
    if parsed is None:
        raise SystemExit(f"--since is not an ISO-8601 timestamp: {value}")
    return parsed


if __name__ == "__main__":
    sys.exit(main())
