"""Unit tests for the concurrency limiter."""

from __future__ import annotations

import asyncio

import pytest

from context_rag.ingestion.limiter import ConcurrencyLimiter


def test_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ConcurrencyLimiter(0)


@pytest.mark.asyncio
async def test_never_admits_more_than_limit() -> None:
    limiter = ConcurrencyLimiter(3)
    active = 0
    peak = 0

    async def work(i: int) -> int:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        assert limiter.in_flight <= 3
        await asyncio.sleep(0.01)
        active -= 1
        return i

    results = await asyncio.gather(*(limiter.run(work, i) for i in range(12)))

    assert results == list(range(12))
    assert peak == 3
    assert limiter.in_flight == 0


@pytest.mark.asyncio
async def test_queued_calls_start_in_submission_order() -> None:
    limiter = ConcurrencyLimiter(1)
    started: list[int] = []

    async def work(i: int) -> None:
        started.append(i)
        await asyncio.sleep(0)

    await asyncio.gather(*(limiter.run(work, i) for i in range(5)))
    assert started == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_slot_is_released_when_call_raises() -> None:
    limiter = ConcurrencyLimiter(1)

    async def boom() -> None:
        raise RuntimeError("backend error")

    with pytest.raises(RuntimeError):
        await limiter.run(boom)

    assert limiter.in_flight == 0
    assert await asyncio.wait_for(limiter.run(asyncio.sleep, 0, result="ok"), timeout=1) == "ok"


@pytest.mark.asyncio
async def test_context_manager_tracks_in_flight() -> None:
    limiter = ConcurrencyLimiter(2)
    async with limiter:
        assert limiter.in_flight == 1
    assert limiter.in_flight == 0
