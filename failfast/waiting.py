from __future__ import annotations

import logging
import time
from typing import Callable

from .builder import FailFastCheck


class FailFastError(AssertionError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class WaitTimeoutError(TimeoutError):
    pass


class Waiter:
    """
    Polls a condition until it holds, the timeout passes, or the fail-fast check fires.
    The fail-fast check runs before the condition on every tick.
    """

    def __init__(
        self,
        timeout_seconds: float,
        interval_seconds: float,
        fail_fast: FailFastCheck | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._timeout = timeout_seconds
        self._interval = interval_seconds
        self._fail_fast = fail_fast
        self._clock = clock
        self._sleep = sleep
        self._logger = logging.getLogger(__name__)

    def wait_for(self, condition: Callable[[], bool], description: str = "condition") -> None:
        deadline = self._clock() + self._timeout
        while True:
            if self._fail_fast is not None and self._fail_fast():
                self._logger.info("Stopped waiting for %s: fail-fast check triggered", description)
                raise FailFastError(self._fail_fast.reason())
            if condition():
                return
            if self._clock() >= deadline:
                raise WaitTimeoutError(f"Timeout waiting for {description} after {self._timeout:.1f}s")
            self._sleep(self._interval)
