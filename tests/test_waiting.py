from __future__ import annotations

import unittest

from failfast.builder import FailFastBuilder
from failfast.checks import Check
from failfast.waiting import FailFastError, Waiter, WaitTimeoutError


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


def _fail_fast_after(ticks: int) -> FailFastBuilder:
    counter = iter(range(1_000))
    registry = FailFastBuilder([])
    registry.add_check(
        Check(
            supplier=lambda: next(counter),
            condition=lambda tick: tick >= ticks,
            reason=lambda tick: f"failed on tick {tick}",
        )
    )
    return registry


class WaiterTests(unittest.TestCase):
    def _waiter(self, timeout: float, registry: FailFastBuilder | None = None) -> tuple[Waiter, FakeClock]:
        clock = FakeClock()
        waiter = Waiter(
            timeout_seconds=timeout,
            interval_seconds=1,
            fail_fast=registry.build() if registry else None,
            clock=clock,
            sleep=clock.sleep,
        )
        return waiter, clock

    def test_returns_when_condition_holds(self) -> None:
        waiter, clock = self._waiter(10)
        waiter.wait_for(lambda: clock.now >= 3)
        self.assertEqual(clock.now, 3)

    def test_times_out(self) -> None:
        waiter, clock = self._waiter(5)
        with self.assertRaises(WaitTimeoutError):
            waiter.wait_for(lambda: False, description="pods")
        self.assertEqual(clock.now, 5)

    def test_fail_fast_aborts_with_reason(self) -> None:
        waiter, clock = self._waiter(60, _fail_fast_after(2))
        with self.assertRaises(FailFastError) as ctx:
            waiter.wait_for(lambda: False)
        self.assertEqual(ctx.exception.reason, "failed on tick 2")
        self.assertEqual(clock.now, 2)

    def test_fail_fast_checked_before_condition(self) -> None:
        waiter, _ = self._waiter(60, _fail_fast_after(0))
        with self.assertRaises(FailFastError):
            waiter.wait_for(lambda: True)

    def test_check_errors_propagate(self) -> None:
        registry = FailFastBuilder([])
        registry.add_check(Check(supplier=lambda: 1 / 0, condition=bool, reason=str))
        waiter, _ = self._waiter(60, registry)
        with self.assertRaises(ZeroDivisionError):
            waiter.wait_for(lambda: False)
