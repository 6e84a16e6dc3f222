"""Login lockout with escalating cooldowns.

State lives in process memory, so each worker enforces its own lockouts.
Failures are tracked separately per client IP and per username so that one IP
cannot sweep many usernames and one username cannot be sprayed from many IPs.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

# (failure count, lockout seconds), checked from the most severe down
DEFAULT_ESCALATION: tuple[tuple[int, int], ...] = (
    (10, 30 * 60),
    (5, 5 * 60),
)

STALE_ENTRY_SECONDS = 60 * 60
CLEANUP_EVERY_SECONDS = 60


@dataclass
class FailedAttempt:
    count: int = 0
    first_failure: float = 0.0
    lockout_until: float = 0.0


def _keys(ip: str | None, username: str | None) -> list[str]:
    keys = []
    if ip:
        keys.append(f"ip:{ip}")
    if username:
        keys.append(f"user:{username.lower()}")
    return keys


class LockoutManager:
    """Track failed login attempts and decide when a client is locked out."""

    def __init__(
        self,
        escalation: tuple[tuple[int, int], ...] = DEFAULT_ESCALATION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._escalation = escalation
        self._clock = clock
        self._attempts: dict[str, FailedAttempt] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def _lockout_for(self, count: int) -> int:
        for threshold, seconds in self._escalation:
            if count >= threshold:
                return seconds
        return 0

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_EVERY_SECONDS:
            return
        self._last_cleanup = now
        stale = [
            key
            for key, attempt in self._attempts.items()
            if attempt.lockout_until < now and now - attempt.first_failure > STALE_ENTRY_SECONDS
        ]
        for key in stale:
            del self._attempts[key]

    def is_locked_out(self, ip: str | None, username: str | None) -> tuple[bool, int]:
        """Return (is_locked, seconds_remaining) across the IP and username keys."""
        with self._lock:
            now = self._clock()
            self._cleanup(now)
            remaining = 0
            for key in _keys(ip, username):
                attempt = self._attempts.get(key)
                if attempt and attempt.lockout_until > now:
                    remaining = max(remaining, int(attempt.lockout_until - now))
            return remaining > 0, remaining

    def record_failure(self, ip: str | None, username: str | None) -> tuple[bool, int]:
        """Record a failed login and return (is_now_locked, lockout_seconds)."""
        with self._lock:
            now = self._clock()
            lockout_seconds = 0
            for key in _keys(ip, username):
                attempt = self._attempts.get(key)
                if attempt is None or 0 < attempt.lockout_until < now:
                    # First failure, or a previous lockout has run out
                    attempt = FailedAttempt(first_failure=now)
                    self._attempts[key] = attempt
                attempt.count += 1

                seconds = self._lockout_for(attempt.count)
                if seconds:
                    attempt.lockout_until = now + seconds
                    lockout_seconds = max(lockout_seconds, seconds)
            return lockout_seconds > 0, lockout_seconds

    def record_success(self, ip: str | None, username: str | None) -> None:
        with self._lock:
            for key in _keys(ip, username):
                self._attempts.pop(key, None)


lockout_manager = LockoutManager()
