from __future__ import annotations

import time
from typing import Callable


class SessionManager:
    """Fixed-length DM access windows keyed by Discord user id."""

    def __init__(
        self,
        *,
        window_seconds: float = 600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.window_seconds = max(0.0, float(window_seconds))
        self._clock = clock
        self._expiry_by_user: dict[int, float] = {}

    def __len__(self) -> int:
        return len(self._expiry_by_user)

    def start_session(self, user_id: int, now: float | None = None) -> float:
        current = self._clock() if now is None else float(now)
        self._prune(current)
        expiry = current + self.window_seconds
        self._expiry_by_user[int(user_id)] = expiry
        print(f"[Sessions] Session started for {int(user_id)} expires_in_s={self.window_seconds:.0f}")
        return expiry

    def expiry_for(self, user_id: int) -> float | None:
        return self._expiry_by_user.get(int(user_id))

    def is_admitted(self, user_id: int, now: float | None = None) -> bool:
        current = self._clock() if now is None else float(now)
        uid = int(user_id)
        expiry = self._expiry_by_user.get(uid)
        if expiry is None:
            return False
        if current <= expiry:
            return True
        self._expiry_by_user.pop(uid, None)
        return False

    def _prune(self, now: float) -> None:
        expired = [uid for uid, expiry in self._expiry_by_user.items() if now > expiry]
        for uid in expired:
            self._expiry_by_user.pop(uid, None)
