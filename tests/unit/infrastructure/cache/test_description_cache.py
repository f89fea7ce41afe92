import asyncio

import pytest
from unittest.mock import AsyncMock

from mktocli.infrastructure.cache.description_cache import DescriptionCache, cache_successful

pytestmark = pytest.mark.asyncio

GOOD = {"success": True, "result": [{"name": "car_c"}]}


async def test_miss_then_hit():
    cache = DescriptionCache()
    fetch = AsyncMock(return_value=GOOD)

    assert await cache.get_or_fetch("car_c", fetch) == GOOD
    assert await cache.get_or_fetch("car_c", fetch) == GOOD

    fetch.assert_awaited_once()
    assert "car_c" in cache
    assert len(cache) == 1
    assert cache.peek("car_c") == GOOD


async def test_keys_are_independent():
    cache = DescriptionCache()
    await cache.get_or_fetch("a", AsyncMock(return_value=GOOD))
    fetch_b = AsyncMock(return_value=GOOD)
    await cache.get_or_fetch("b", fetch_b)
    fetch_b.assert_awaited_once()
    assert len(cache) == 2


async def test_in_flight_fetch_is_shared():
    cache = DescriptionCache()
    release = asyncio.Event()
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        await release.wait()
        return GOOD

    waiters = [asyncio.ensure_future(cache.get_or_fetch("car_c", fetch)) for _ in range(4)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters)

    assert calls == 1
    assert all(r == GOOD for r in results)


async def test_cancelled_owner_does_not_cancel_waiters():
    cache = DescriptionCache()
    calls = 0

    async def fetch():
        nonlocal calls
        calls += 1
        if calls == 1:
            await asyncio.Event().wait()
        return GOOD

    owner = asyncio.ensure_future(cache.get_or_fetch("car_c", fetch))
    await asyncio.sleep(0)
    waiter = asyncio.ensure_future(cache.get_or_fetch("car_c", fetch))
    await asyncio.sleep(0)
    owner.cancel()

    assert await waiter == GOOD
    with pytest.raises(asyncio.CancelledError):
        await owner
    assert calls == 2
    assert "car_c" in cache


async def test_cancelled_waiter_leaves_owner_running():
    cache = DescriptionCache()
    release = asyncio.Event()

    async def fetch():
        await release.wait()
        return GOOD

    owner = asyncio.ensure_future(cache.get_or_fetch("car_c", fetch))
    await asyncio.sleep(0)
    waiter = asyncio.ensure_future(cache.get_or_fetch("car_c", fetch))
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    release.set()
    assert await owner == GOOD


async def test_failed_fetch_reaches_all_waiters_and_is_not_cached():
    cache = DescriptionCache()
    release = asyncio.Event()

    async def failing_fetch():
        await release.wait()
        raise RuntimeError("describe failed")

    waiters = [asyncio.ensure_future(cache.get_or_fetch("car_c", failing_fetch)) for _ in range(2)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert all(isinstance(r, RuntimeError) for r in results)
    assert "car_c" not in cache


async def test_invalidate_and_clear():
    cache = DescriptionCache()
    await cache.get_or_fetch("a", AsyncMock(return_value=GOOD))
    await cache.get_or_fetch("b", AsyncMock(return_value=GOOD))

    cache.invalidate("a")
    assert "a" not in cache and "b" in cache

    cache.clear()
    assert len(cache) == 0


async def test_custom_storage_rule():
    cache = DescriptionCache(should_cache=lambda description: False)
    fetch = AsyncMock(return_value=GOOD)
    await cache.get_or_fetch("a", fetch)
    await cache.get_or_fetch("a", fetch)
    assert fetch.await_count == 2


@pytest.mark.parametrize("description, expected", [
    (GOOD, True),
    ({"result": [{"name": "x"}]}, True),
    ({"success": False, "result": [{"name": "x"}]}, False),
    ({"success": True, "result": []}, False),
    ({}, False),
])
async def test_cache_successful(description, expected):
    assert cache_successful(description) is expected
