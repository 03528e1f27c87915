"""Tests for RateLimiter - failed login throttling."""

import pytest

from auth.config import AuthConfig
from auth.exceptions import RateLimitedError
from auth.rate_limiter import RateLimiter


@pytest.fixture
def config():
    """Low attempt count for faster tests."""
    return AuthConfig(rate_limit_attempts=3, rate_limit_window_minutes=5)


@pytest.fixture
def rate_limiter(valkey, config):
    return RateLimiter(valkey, config)


def fail(rate_limiter, username, times):
    for _ in range(times):
        rate_limiter.record_failure(username)


class TestCheckRateLimit:
    def test_first_attempt_passes(self, rate_limiter):
        rate_limiter.check_rate_limit("admin")

    def test_below_limit_passes(self, rate_limiter, config):
        fail(rate_limiter, "admin", config.rate_limit_attempts - 1)

        rate_limiter.check_rate_limit("admin")

    def test_at_limit_raises_with_retry_after(self, rate_limiter, config):
        fail(rate_limiter, "admin", config.rate_limit_attempts)

        with pytest.raises(RateLimitedError) as exc_info:
            rate_limiter.check_rate_limit("admin")

        assert exc_info.value.retry_after_seconds == 5 * 60

    def test_usernames_tracked_separately(self, rate_limiter, config):
        fail(rate_limiter, "admin", config.rate_limit_attempts)

        rate_limiter.check_rate_limit("someone-else")

    def test_usernames_normalized(self, rate_limiter, config):
        fail(rate_limiter, "  Admin ", config.rate_limit_attempts)

        with pytest.raises(RateLimitedError):
            rate_limiter.check_rate_limit("admin")


class TestRecordFailure:
    def test_counts_and_sets_window(self, rate_limiter, valkey):
        assert rate_limiter.record_failure("admin") == 1
        assert rate_limiter.record_failure("admin") == 2

        assert valkey.ttl(f"{RateLimiter.KEY_PREFIX}admin") == 5 * 60

    def test_remaining_attempts(self, rate_limiter, config):
        assert rate_limiter.get_remaining_attempts("admin") == config.rate_limit_attempts

        fail(rate_limiter, "admin", 2)

        assert rate_limiter.get_remaining_attempts("admin") == 1

    def test_reset_clears_counter(self, rate_limiter, config):
        fail(rate_limiter, "admin", config.rate_limit_attempts)

        rate_limiter.reset_rate_limit("admin")

        rate_limiter.check_rate_limit("admin")
        assert rate_limiter.get_remaining_attempts("admin") == config.rate_limit_attempts
