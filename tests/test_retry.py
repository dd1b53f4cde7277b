import pytest

from billsync.errors import InvalidRequest, UpstreamUnavailable
from billsync.utils.rate_limiter import RateLimiter
from billsync.utils.retry import calculate_backoff, is_retryable_error, retry_async


def test_calculate_backoff_without_jitter() -> None:
    assert calculate_backoff(0, jitter=False) == 1.0
    assert calculate_backoff(3, jitter=False) == 8.0
    assert calculate_backoff(10, max_delay=30.0, jitter=False) == 30.0


def test_only_upstream_failures_are_retryable() -> None:
    assert is_retryable_error(UpstreamUnavailable("down"))
    assert not is_retryable_error(InvalidRequest("bad"))
    assert not is_retryable_error(ValueError("x"))
    assert is_retryable_error(ValueError("x"), (ValueError,))


@pytest.mark.asyncio
async def test_single_attempt_by_default() -> None:
    calls = []

    async def fail():
        calls.append(1)
        raise UpstreamUnavailable("down")

    with pytest.raises(UpstreamUnavailable):
        await retry_async(fail)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retries_until_success() -> None:
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise UpstreamUnavailable("down")
        return "ok"

    assert await retry_async(flaky, max_attempts=3, base_delay=0.0) == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_non_retryable_error_is_raised_immediately() -> None:
    calls = []

    async def invalid():
        calls.append(1)
        raise InvalidRequest("bad")

    with pytest.raises(InvalidRequest):
        await retry_async(invalid, max_attempts=5, base_delay=0.0)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_rate_limiter_waits_when_bucket_is_empty() -> None:
    now = [0.0]
    limiter = RateLimiter(rate=1000.0, burst=2, clock=lambda: now[0])

    await limiter.acquire()
    await limiter.acquire()
    assert limiter.waits == 0

    await limiter.acquire()
    assert limiter.waits == 1

    limiter.reset()
    assert limiter.available() == 2
