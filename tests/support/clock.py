from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


@dataclass
class FakeClock:
    """
    Deterministic wall clock for tests.

    Callable, so it can be passed anywhere a `Clock` is expected.
    """

    now_utc: datetime

    @classmethod
    def fixed(cls, *, year: int = 2026, month: int = 1, day: int = 1) -> "FakeClock":
        return cls(now_utc=datetime(year, month, day, 0, 0, 0, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self.now_utc

    def __call__(self) -> datetime:
        return self.now_utc

    def advance(self, delta: timedelta) -> None:
        self.now_utc = self.now_utc + delta


@dataclass
class FakeMonotonic:
    """Monotonic seconds counter for TTL-based code."""

    value: float = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds
