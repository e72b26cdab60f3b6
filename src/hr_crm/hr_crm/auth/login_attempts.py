from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock
from typing import Callable, Dict, Optional

from ..common.datetime_utils import now_local
from ..core.constants import LOGIN_LOCK_MINUTES, LOGIN_MAX_ATTEMPTS


@dataclass
class _AttemptState:
    attempts: int = 0
    lock_until: Optional[datetime] = None


@dataclass(frozen=True)
class AttemptResult:
    locked: bool
    remaining: int
    lock_until: Optional[datetime] = None


class LoginAttemptTracker:
    """Per-email failed login counter kept in process memory.

    After ``max_attempts`` consecutive failures the email is locked for
    ``lock_minutes`` and its counter starts over. A successful login clears it.
    """

    def __init__(
        self,
        *,
        max_attempts: int = LOGIN_MAX_ATTEMPTS,
        lock_minutes: int = LOGIN_LOCK_MINUTES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._max = int(max_attempts)
        self._lock_for = timedelta(minutes=int(lock_minutes))
        self._clock = clock
        self._state: Dict[str, _AttemptState] = {}
        self._mutex = Lock()

    @staticmethod
    def _key(email: str) -> str:
        return (email or "").strip().lower()

    def locked_until(self, email: str) -> Optional[datetime]:
        with self._mutex:
            state = self._state.get(self._key(email))
            if state and state.lock_until and state.lock_until > self._clock():
                return state.lock_until
            return None

    def minutes_left(self, lock_until: datetime) -> int:
        seconds = (lock_until - self._clock()).total_seconds()
        return max(1, math.ceil(seconds / 60))

    def record_failure(self, email: str) -> AttemptResult:
        key = self._key(email)
        now = self._clock()
        with self._mutex:
            state = self._state.setdefault(key, _AttemptState())
            if state.lock_until and state.lock_until > now:
                return AttemptResult(locked=True, remaining=0, lock_until=state.lock_until)

            state.attempts += 1
            if state.attempts >= self._max:
                state.lock_until = now + self._lock_for
                state.attempts = 0
                return AttemptResult(locked=True, remaining=0, lock_until=state.lock_until)
            return AttemptResult(locked=False, remaining=self._max - state.attempts)

    def reset(self, email: str) -> None:
        with self._mutex:
            self._state.pop(self._key(email), None)
