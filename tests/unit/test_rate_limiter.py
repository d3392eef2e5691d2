import asyncio

import pytest

from api_gateway.middleware import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


async def test_allows_up_to_max_requests(clock):
    limiter = RateLimiter(max_requests=3, window_seconds=60, clock=clock)

    results = [await limiter.acquire("1.2.3.4") for _ in range(4)]

    assert results == [True, True, True, False]


async def test_limits_are_per_client(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)

    assert await limiter.acquire("a") is True
    assert await limiter.acquire("b") is True
    assert await limiter.acquire("a") is False


async def test_window_expires(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
    await limiter.acquire("a")
    assert await limiter.acquire("a") is False

    clock.advance(60)

    assert await limiter.acquire("a") is True


async def test_expired_windows_are_evicted(clock):
    limiter = RateLimiter(max_requests=5, window_seconds=10, clock=clock)
    for key in ("a", "b", "c"):
        await limiter.acquire(key)

    clock.advance(11)
    await limiter.acquire("d")

    assert set(limiter._windows) == {"d"}


async def test_retry_after(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=3600, clock=clock)
    await limiter.acquire("a")
    clock.advance(600)

    assert await limiter.retry_after("a") == 3000
    assert await limiter.retry_after("unknown") == 0


async def test_reset(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
    await limiter.acquire("a")

    limiter.reset()

    assert await limiter.acquire("a") is True


async def test_concurrent_acquires_never_exceed_the_limit(clock):
    limiter = RateLimiter(max_requests=10, window_seconds=60, clock=clock)

    results = await asyncio.gather(*(limiter.acquire("a") for _ in range(50)))

    assert results.count(True) == 10
