"""Injectable wall-clock sources.

Every status transition is a function of the stored status plus "now", so
the engine never reads the system clock directly. Services receive a
``now_fn`` and tests swap in a :class:`FixedClock`.
"""

from __future__ import annotations

import datetime
from typing import Callable

NowFn = Callable[[], datetime.datetime]


def system_now() -> datetime.datetime:
    # 日本語: ローカル壁時計 (タイムゾーン解決済みとみなす) / English: Local wall clock, treated as already resolved
    return datetime.datetime.now()


class FixedClock:
    """A settable clock for deterministic transitions."""

    def __init__(self, now: datetime.datetime):
        self._now = now

    def __call__(self) -> datetime.datetime:
        return self._now

    def set(self, now: datetime.datetime) -> None:
        self._now = now

    def advance(self, **delta: float) -> datetime.datetime:
        self._now = self._now + datetime.timedelta(**delta)
        return self._now
