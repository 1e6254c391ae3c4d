"""Packet rate measurement for the rate chart."""

from __future__ import annotations

from collections import deque

CHART_UPDATE_TIMER = 100  # milliseconds between chart updates
MAX_CHART_POINTS = 100


class RateTracker:
    """Turns a running packet total, sampled at a fixed interval, into rates."""

    def __init__(
        self, interval_ms: int = CHART_UPDATE_TIMER, max_points: int = MAX_CHART_POINTS
    ) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if max_points < 1:
            raise ValueError("max_points must be at least 1")
        self.interval_ms = int(interval_ms)
        self.max_points = int(max_points)
        self._last = 0
        self._rates: deque[int] = deque(maxlen=self.max_points)

    def update(self, total_packets: int) -> int:
        """Record a new total and return the packets-per-second since the last one."""
        total = int(total_packets)
        # A total below the last one means the counters were cleared.
        delta = total - self._last if total >= self._last else total
        rate = delta * 1000 // self.interval_ms
        self._last = total
        self._rates.append(rate)
        return rate

    def reset(self) -> None:
        """Forget the last total and the rate history."""
        self._last = 0
        self._rates.clear()

    def rates(self) -> list[int]:
        """Recent rates, oldest first."""
        return list(self._rates)