"""
Tests for the approval action rate limiter.
"""

import pytest

from helpdesk.domain.errors import RateLimitError
from helpdesk.services.rate_limiter import RateLimiter, RateLimitWindow


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(max_requests=3, window_seconds=60, clock=clock)


class TestRateLimitWindow:
    """Tests for RateLimitWindow dataclass."""

    def test_default_values(self):
        """Test default window values."""
        window = RateLimitWindow()
        assert window.count == 0
        assert window.window_start > 0

    def test_custom_values(self):
        """Test custom window values."""
        window = RateLimitWindow(count=5, window_start=1000.0)
        assert window.count == 5
        assert window.window_start == 1000.0


class TestRateLimiter:
    """Tests for RateLimiter.check and housekeeping."""

    def test_allows_requests_within_limit(self, limiter):
        """Each allowed request reports what is left."""
        assert limiter.check("manager") == 2
        assert limiter.check("manager") == 1
        assert limiter.check("manager") == 0

    def test_blocks_when_window_full(self, limiter, clock):
        """The fourth request in a window is rejected with retry info."""
        for _ in range(3):
            limiter.check("manager")
        clock.advance(15)

        with pytest.raises(RateLimitError) as exc:
            limiter.check("manager")

        assert exc.value.http_status == 429
        assert exc.value.details["retry_after"] == 45
        assert exc.value.details["limit"] == 3

    def test_keys_are_independent(self, limiter):
        """One caller's window does not affect another's."""
        for _ in range(3):
            limiter.check("manager")

        assert limiter.check("finance") == 2

    def test_window_resets_after_expiry(self, limiter, clock):
        for _ in range(3):
            limiter.check("manager")
        clock.advance(60)

        assert limiter.check("manager") == 2

    def test_retry_after_is_at_least_one_second(self, limiter, clock):
        for _ in range(3):
            limiter.check("manager")
        clock.advance(59.9)

        with pytest.raises(RateLimitError) as exc:
            limiter.check("manager")

        assert exc.value.details["retry_after"] == 1

    def test_reset_clears_one_key(self, limiter):
        for _ in range(3):
            limiter.check("manager")

        limiter.reset("manager")

        assert limiter.check("manager") == 2

    def test_purge_expired(self, limiter, clock):
        """Only windows that have run out are dropped."""
        limiter.check("manager")
        clock.advance(30)
        limiter.check("finance")
        clock.advance(31)

        assert limiter.purge_expired() == 1
        assert len(limiter) == 1

    def test_reset_all(self, limiter):
        limiter.check("manager")
        limiter.check("finance")

        limiter.reset_all()

        assert len(limiter) == 0

    @pytest.mark.parametrize("max_requests, window_seconds", [(0, 60), (5, 0)])
    def test_rejects_non_positive_settings(self, max_requests, window_seconds):
        with pytest.raises(ValueError):
            RateLimiter(max_requests=max_requests, window_seconds=window_seconds)
