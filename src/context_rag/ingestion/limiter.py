"""Bounded concurrency for embedding calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from context_rag.config import settings

T = TypeVar("T")


class ConcurrencyLimiter:
    """Admit at most *limit* concurrent calls; excess callers queue in FIFO order.

    Built on :class:`asyncio.Semaphore`, whose acquire/release are atomic
    with respect to the event loop and wake waiters in arrival order.
    """

    def __init__(self, limit: int = settings.embedding_concurrency) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Number of calls currently holding a slot."""
        return self._in_flight

    async def __aenter__(self) -> ConcurrencyLimiter:
        await self._semaphore.acquire()
        self._in_flight += 1
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._in_flight -= 1
        self._semaphore.release()

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await ``fn(*args, **kwargs)`` once a slot is free."""
        async with self:
            return await fn(*args, **kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(limit={self.limit}, in_flight={self._in_flight})"
