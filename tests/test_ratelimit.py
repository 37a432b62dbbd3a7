"""Tests for per-user reply rate limiting."""

from types import SimpleNamespace

import pytest

from ghlines import ratelimit
from ghlines.ratelimit import RateLimiter, get_rate_limiter, init_rate_limiter_from_settings


@pytest.fixture
def clock(monkeypatch):
    """Controllable replacement for time.monotonic."""
    now = {"t": 1000.0}
    monkeypatch.setattr(ratelimit.time, "monotonic", lambda: now["t"])
    return now


class TestRateLimiter:
    """Test rate limiting functionality."""

    def test_check_does_not_consume(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        for _ in range(5):
            allowed, msg = limiter.check("user1")
            assert allowed is True
            assert msg == ""

    def test_blocks_over_limit(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        limiter.record("user1")
        limiter.record("user1")

        allowed, msg = limiter.check("user1")
        assert allowed is False
        assert "Slow down" in msg

    def test_separate_limits_per_user(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.record("user1")
        assert limiter.check("user1")[0] is False
        assert limiter.check("user2")[0] is True

    def test_window_slides(self, clock):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.record("user1")
        clock["t"] += 59
        assert limiter.check("user1")[0] is False
        clock["t"] += 1
        assert limiter.check("user1")[0] is True

    def test_reset_user(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.record("user1")
        limiter.reset_user("user1")
        assert limiter.check("user1")[0] is True

    def test_reset_all(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.record("user1")
        limiter.record("user2")
        limiter.reset_all()
        assert limiter.check("user1")[0] is True
        assert limiter.check("user2")[0] is True

    def test_update_limits_floor(self):
        limiter = RateLimiter()
        limiter.update_limits(max_requests=0, window_seconds=-5)
        assert limiter.max_requests == 1
        assert limiter.window == 1

    def test_user_status(self, clock):
        limiter = RateLimiter(max_requests=3, window_seconds=60)
        limiter.record("user1")
        clock["t"] += 10
        status = limiter.get_user_status("user1")
        assert status["requests_made"] == 1
        assert status["requests_remaining"] == 2
        assert status["reset_in_seconds"] == 50


class TestGlobalLimiter:

    def test_singleton(self, monkeypatch):
        monkeypatch.setattr(ratelimit, "_limiter", None)
        assert get_rate_limiter() is get_rate_limiter()

    def test_init_from_settings(self, monkeypatch):
        monkeypatch.setattr(ratelimit, "_limiter", None)
        settings = SimpleNamespace(ratelimit_max_requests=7, ratelimit_window_seconds=30)
        limiter = init_rate_limiter_from_settings(settings)
        assert limiter is get_rate_limiter()
        assert (limiter.max_requests, limiter.window) == (7, 30)
