"""Bounded-concurrency admission gate for async jobs.

``ConcurrencyLimiter`` is independent of the work it limits: any coroutine
function can be passed to :meth:`ConcurrencyLimiter.run`.  At most ``limit``
jobs run at once; the rest wait in submission order.  A freed slot is handed
directly to the oldest waiter, so admission is strictly FIFO.

Everything runs on one event loop, so the counter and the queue need no lock.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class ConcurrencyLimiter:
    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self._limit = limit
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        """Number of jobs currently running."""
        return self._active

    @property
    def pending(self) -> int:
        """Number of jobs waiting for a slot."""
        return len(self._waiters)

    async def _acquire(self) -> None:
        if self._active < self._limit and not self._waiters:
            self._active += 1
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.cancelled():
                if waiter in self._waiters:
                    self._waiters.remove(waiter)
            else:
                # The slot was handed over just before the cancellation landed.
                self._release()
            raise

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._active -= 1

    async def run(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Run ``fn(*args, **kwargs)`` once a slot is free and return its result.

        Exceptions raised by *fn* propagate to this caller only; the slot is
        released either way.
        """
        await self._acquire()
        try:
            return await fn(*args, **kwargs)
        finally:
            self._release()
