from __future__ import annotations

import time
from typing import Callable


class RateGovernor:
    """Process-wide gate: no backend dispatch before `next_available_at`."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.next_available_at = clock()

    def now(self) -> float:
        return self._clock()

    def check_admit(self, now: float | None = None) -> bool:
        current = self._clock() if now is None else float(now)
        return current >= self.next_available_at

    def remaining(self, now: float | None = None) -> float:
        current = self._clock() if now is None else float(now)
        return max(0.0, self.next_available_at - current)

    def penalize(self, duration_seconds: float, now: float | None = None) -> float:
        current = self._clock() if now is None else float(now)
        candidate = current + max(0.0, float(duration_seconds))
        # never move the gate backwards
        if candidate > self.next_available_at:
            self.next_available_at = candidate
        print(
            f"[Relay] rate gate penalized duration_s={float(duration_seconds):.1f} "
            f"next_available_in_s={self.remaining(current):.1f}"
        )
        return self.next_available_at
