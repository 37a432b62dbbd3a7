"""Per-user reply quota.

One chat member posting link after link would otherwise turn a group into
a wall of code blocks. Each user gets a fixed number of snippet replies per
sliding window; messages that produce no reply are free.
"""

import logging
import time
from collections import deque
from typing import Optional

logger = logging.getLogger("ghlines.ratelimit")


class RateLimiter:
    """Sliding-window quota keyed by user id.

    ``check`` only looks; ``record`` spends. The Telegram channel checks
    after a message resolved to something worth sending, then records.
    """

    def __init__(self, max_requests: int = 5, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window = window_seconds
        self._sent: dict[str, deque[float]] = {}

    def _recent(self, user_id: str, now: float) -> deque[float]:
        stamps = self._sent.setdefault(user_id, deque())
        while stamps and now - stamps[0] >= self.window:
            stamps.popleft()
        return stamps

    def _wait_seconds(self, stamps: deque[float], now: float) -> int:
        if not stamps:
            return 0
        return max(0, int(self.window - (now - stamps[0])))

    def check(self, user_id: str) -> tuple[bool, str]:
        """Whether user_id may receive another reply right now.

        Returns:
            (True, "") when allowed, otherwise (False, notice text)
        """
        now = time.monotonic()
        stamps = self._recent(user_id, now)
        if len(stamps) < self.max_requests:
            return True, ""

        wait = max(1, self._wait_seconds(stamps, now))
        logger.info(f"Reply quota exhausted for {user_id}, {wait}s to go")
        return False, (
            f"Slow down! Please wait {wait}s before posting more links. "
            f"(Max {self.max_requests} snippets per {self.window}s)"
        )

    def record(self, user_id: str):
        """Spend one reply from user_id's quota."""
        now = time.monotonic()
        self._recent(user_id, now).append(now)

    def update_limits(self, max_requests: Optional[int] = None, window_seconds: Optional[int] = None):
        """Change the quota; values below 1 are raised to 1."""
        if max_requests is not None:
            self.max_requests = max(1, max_requests)
        if window_seconds is not None:
            self.window = max(1, window_seconds)
        logger.info(f"Reply quota set to {self.max_requests} per {self.window}s")

    def reset_user(self, user_id: str):
        if self._sent.pop(user_id, None) is not None:
            logger.debug(f"Reply quota cleared for {user_id}")

    def reset_all(self):
        self._sent.clear()

    def get_user_status(self, user_id: str) -> dict:
        """Snapshot of user_id's quota, for diagnostics."""
        now = time.monotonic()
        stamps = self._recent(user_id, now)
        return {
            "requests_made": len(stamps),
            "requests_remaining": max(0, self.max_requests - len(stamps)),
            "max_requests": self.max_requests,
            "window_seconds": self.window,
            "reset_in_seconds": self._wait_seconds(stamps, now),
        }


_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter shared by every channel."""
    global _limiter
    if _limiter is None:
        _limiter = RateLimiter()
    return _limiter


def init_rate_limiter_from_settings(settings) -> RateLimiter:
    """Apply the ratelimit_* settings to the shared limiter."""
    limiter = get_rate_limiter()
    limiter.update_limits(
        max_requests=settings.ratelimit_max_requests,
        window_seconds=settings.ratelimit_window_seconds,
    )
    return limiter
