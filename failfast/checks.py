from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar


T = TypeVar("T")


@dataclass(frozen=True)
class Check(Generic[T]):
    """
    A fail-fast condition over a snapshot of watched resources.

    ``fetch`` may block on the network. ``evaluate`` and ``explain`` are pure and are always
    given a snapshot returned by ``fetch``; ``explain`` is only called for a snapshot that
    ``evaluate`` accepted.
    """

    supplier: Callable[[], T]
    condition: Callable[[T], bool]
    reason: Callable[[T], str]

    def fetch(self) -> T:
        return self.supplier()

    def evaluate(self, snapshot: T) -> bool:
        return self.condition(snapshot)

    def explain(self, snapshot: T) -> str:
        return self.reason(snapshot)
