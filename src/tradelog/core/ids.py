"""Trade identity factory.

Trade ids are integers derived from the clock in milliseconds.  Two
trades created within the same millisecond (or after the clock stepped
backwards) still receive distinct, strictly increasing ids.
"""

from __future__ import annotations

from .clock import IClock, WallClock


class TradeIdFactory:
    """Hands out monotonic, clock-derived integer ids."""

    def __init__(self, clock: IClock | None = None) -> None:
        self._clock = clock or WallClock()
        self._last = 0

    def observe(self, existing_id: int) -> None:
        """Never issue an id at or below one already in use."""
        if existing_id > self._last:
            self._last = existing_id

    def next_id(self) -> int:
        candidate = self._clock.now_ms()
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate
