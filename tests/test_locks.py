import asyncio

import pytest

from src.services.roulette.errors import ContentionError
from src.services.roulette.locks import KeyedLocks


@pytest.mark.asyncio
async def test_lock_is_dropped_when_idle():
    locks = KeyedLocks()

    async with locks.hold("k"):
        assert "k" in locks
        assert locks.locked("k")

    assert "k" not in locks
    assert len(locks) == 0
    assert not locks.locked("k")


@pytest.mark.asyncio
async def test_same_key_runs_one_at_a_time():
    locks = KeyedLocks()
    active = 0
    peak = 0

    async def worker():
        nonlocal active, peak
        async with locks.hold(("pool", "user")):
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

    await asyncio.gather(*(worker() for _ in range(5)))

    assert peak == 1
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_do_not_wait():
    locks = KeyedLocks()
    entered = asyncio.Event()

    async with locks.hold("first"):
        async def other():
            async with locks.hold("second"):
                entered.set()

        await asyncio.wait_for(other(), timeout=1.0)

    assert entered.is_set()


@pytest.mark.asyncio
async def test_acquire_timeout_raises_contention():
    locks = KeyedLocks()

    async with locks.hold("k"):
        with pytest.raises(ContentionError):
            async with locks.hold("k", timeout=0.05):
                pytest.fail("lock should not have been acquired")

        # The timed-out waiter no longer counts toward the key
        assert locks._users["k"] == 1

    assert "k" not in locks


@pytest.mark.asyncio
async def test_error_inside_hold_releases_lock():
    locks = KeyedLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold("k"):
            raise RuntimeError("boom")

    assert "k" not in locks
    async with locks.hold("k", timeout=0.1):
        pass


@pytest.mark.asyncio
async def test_cancel_right_after_handover_does_not_leak_lock():
    locks = KeyedLocks()
    release = asyncio.Event()
    waiter = None

    async def holder():
        async with locks.hold("k"):
            await release.wait()
        # The waiter has just been handed the lock but has not run yet
        waiter.cancel()

    async def wait_for_key():
        async with locks.hold("k", timeout=5.0):
            pytest.fail("cancelled waiter should not enter")

    holding = asyncio.create_task(holder())
    await asyncio.sleep(0)
    waiter = asyncio.create_task(wait_for_key())
    await asyncio.sleep(0)

    release.set()
    await holding
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert not locks.locked("k")
    assert len(locks) == 0
    async with locks.hold("k", timeout=0.1):
        pass


@pytest.mark.asyncio
async def test_timeouts_racing_release_never_leave_key_held():
    locks = KeyedLocks()

    async def holder(delay):
        async with locks.hold("k"):
            await asyncio.sleep(delay)

    async def waiter():
        try:
            async with locks.hold("k", timeout=0.002):
                pass
        except ContentionError:
            pass

    for attempt in range(50):
        await asyncio.gather(holder((attempt % 5) * 0.001), waiter())
        assert not locks.locked("k")
        assert len(locks) == 0
