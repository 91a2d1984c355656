"""Unit tests for retries.py and rate_limit.py.

Targets:
  - retries.py:    should_retry, compute_backoff
  - rate_limit.py: AsyncTokenBucket
"""
from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from confkit.confluence_api.rate_limit import AsyncTokenBucket
from confkit.confluence_api.retries import (
    RETRYABLE_STATUSES,
    compute_backoff,
    is_idempotent,
    should_retry,
)


# ---------------------------------------------------------------------------
# should_retry
# ---------------------------------------------------------------------------


class TestShouldRetry:

    # -- attempt exhaustion ---------------------------------------------------

    def test_last_attempt_never_retries(self):
        assert should_retry(503, None, attempt=2, max_attempts=3) is False

    def test_attempt_past_budget(self):
        assert should_retry(500, None, attempt=5, max_attempts=3) is False

    def test_max_attempts_one_never_retries(self):
        assert should_retry(429, None, attempt=0, max_attempts=1) is False

    # -- exceptions -----------------------------------------------------------

    def test_timeout_is_retryable(self):
        exc = httpx.ReadTimeout("timed out", request=MagicMock())
        assert should_retry(None, exc, attempt=0, max_attempts=3) is True

    def test_connect_error_is_retryable(self):
        exc = httpx.ConnectError("connection refused")
        assert should_retry(None, exc, attempt=0, max_attempts=3) is True

    def test_runtime_error_is_not_retryable(self):
        assert should_retry(None, RuntimeError("boom"), attempt=0, max_attempts=3) is False

    def test_exception_checked_before_status_code(self):
        assert should_retry(500, ValueError("bad"), attempt=0, max_attempts=3) is False

    # -- status codes ---------------------------------------------------------

    @pytest.mark.parametrize("status", sorted(RETRYABLE_STATUSES))
    def test_retryable_statuses(self, status):
        assert should_retry(status, None, attempt=0, max_attempts=3) is True

    @pytest.mark.parametrize("status", [200, 400, 401, 403, 404, 409, 422])
    def test_non_retryable_statuses(self, status):
        assert should_retry(status, None, attempt=0, max_attempts=3) is False

    def test_no_status_no_exception(self):
        assert should_retry(None, None, attempt=0, max_attempts=3) is False

    # -- writes ---------------------------------------------------------------

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_write_not_retried_on_server_error(self, status):
        assert should_retry(status, None, attempt=0, max_attempts=3, idempotent=False) is False

    def test_write_not_retried_on_timeout(self):
        exc = httpx.ReadTimeout("timed out", request=MagicMock())
        assert should_retry(None, exc, attempt=0, max_attempts=3, idempotent=False) is False

    def test_write_retried_on_429(self):
        assert should_retry(429, None, attempt=0, max_attempts=3, idempotent=False) is True

    @pytest.mark.parametrize(
        ("method", "expected"),
        [("GET", True), ("DELETE", True), ("put", False), ("POST", False), ("PATCH", False)],
    )
    def test_is_idempotent(self, method, expected):
        assert is_idempotent(method) is expected


# ---------------------------------------------------------------------------
# compute_backoff
# ---------------------------------------------------------------------------


class TestComputeBackoff:

    def test_retry_after_wins(self):
        assert compute_backoff(attempt=10, base=1.0, maximum=30.0, retry_after=7.5, jitter=False) == pytest.approx(7.5)

    def test_retry_after_not_capped(self):
        assert compute_backoff(attempt=0, maximum=1.0, retry_after=5.0, jitter=False) == pytest.approx(5.0)

    @pytest.mark.parametrize(
        ("attempt", "base", "expected"),
        [(0, 1.0, 1.0), (1, 1.0, 2.0), (2, 1.0, 4.0), (3, 2.0, 16.0)],
    )
    def test_exponential_growth(self, attempt, base, expected):
        assert compute_backoff(attempt=attempt, base=base, maximum=60.0, jitter=False) == pytest.approx(expected)

    def test_capped_at_maximum(self):
        assert compute_backoff(attempt=10, base=1.0, maximum=30.0, jitter=False) == pytest.approx(30.0)

    def test_jitter_range(self):
        for _ in range(100):
            r = compute_backoff(attempt=1, base=1.0, maximum=60.0, jitter=True)
            assert 1.0 <= r <= 2.0 + 1e-9

    def test_jitter_bounds_via_patched_random(self):
        with patch("confkit.confluence_api.retries.random.random", return_value=0.0):
            low = compute_backoff(attempt=2, base=1.0, maximum=60.0, jitter=True)
        with patch("confkit.confluence_api.retries.random.random", return_value=1.0):
            high = compute_backoff(attempt=2, base=1.0, maximum=60.0, jitter=True)
        assert low == pytest.approx(2.0)
        assert high == pytest.approx(4.0)

    def test_returns_float(self):
        assert isinstance(compute_backoff(attempt=0, jitter=False), float)


# ---------------------------------------------------------------------------
# AsyncTokenBucket
# ---------------------------------------------------------------------------


class TestAsyncTokenBucket:

    def test_zero_rate_raises(self):
        with pytest.raises(ValueError, match="rate_rps"):
            AsyncTokenBucket(rate_rps=0)

    def test_zero_burst_raises(self):
        with pytest.raises(ValueError, match="burst"):
            AsyncTokenBucket(rate_rps=5.0, burst=0)

    def test_initial_tokens_equal_burst(self):
        bucket = AsyncTokenBucket(rate_rps=10.0, burst=4)
        assert bucket.tokens == pytest.approx(4.0)

    async def test_acquire_without_wait(self):
        bucket = AsyncTokenBucket(rate_rps=10.0, burst=10)
        assert await bucket.acquire() == pytest.approx(0.0)
        assert bucket.tokens <= 9.1

    async def test_acquire_waits_when_empty(self):
        bucket = AsyncTokenBucket(rate_rps=1.0, burst=1)
        await bucket.acquire()
        with patch("confkit.confluence_api.rate_limit.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            waited = await bucket.acquire(tokens=2)
        mock_sleep.assert_awaited_once()
        assert mock_sleep.await_args.args[0] == pytest.approx(2.0, abs=0.05)
        assert waited == pytest.approx(mock_sleep.await_args.args[0])

    async def test_refill_capped_at_burst(self):
        bucket = AsyncTokenBucket(rate_rps=100.0, burst=3)
        bucket.tokens = 0.0
        bucket.last_refill = time.monotonic() - 1000.0
        assert await bucket.acquire() == pytest.approx(0.0)
        assert bucket.tokens == pytest.approx(2.0, abs=0.1)

    async def test_concurrent_acquires(self):
        bucket = AsyncTokenBucket(rate_rps=10_000.0, burst=50)
        results = await asyncio.gather(*(bucket.acquire() for _ in range(40)))
        assert all(r == pytest.approx(0.0) for r in results)
