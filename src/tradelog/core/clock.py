"""Millisecond clocks used to derive trade ids.

WallClock reads the system time; SimClock is driven by hand in tests
and may be stepped backwards to mimic a system clock correction, which
:class:`~tradelog.core.ids.TradeIdFactory` must survive.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Protocol


class IClock(Protocol):
    def now_ms(self) -> int:
        """Milliseconds since the Unix epoch."""
        ...


class WallClock:
    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.now_ms() / 1000, tz=timezone.utc)


class SimClock:
    """Clock that only moves when told to.

    Parameters
    ----------
    start:
        Timezone-aware start instant (default 2024-01-01 UTC).
    """

    def __init__(self, start: datetime | None = None) -> None:
        start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        if start.tzinfo is None:
            raise ValueError("SimClock needs a timezone-aware start")
        self._ms = int(start.timestamp() * 1000)

    def now_ms(self) -> int:
        return self._ms

    def now(self) -> datetime:
        return datetime.fromtimestamp(self._ms / 1000, tz=timezone.utc)

    def advance_ms(self, ms: int) -> None:
        """Move by *ms* milliseconds; negative values step backwards."""
        self._ms += ms
