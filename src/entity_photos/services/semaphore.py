"""FIFO counting semaphore for bounding concurrent network work."""

import asyncio
from collections import deque
from types import TracebackType


class Semaphore:
    """Counting semaphore that hands permits to waiters in arrival order.

    A released permit is transferred directly to the oldest waiter, so a
    newcomer calling ``acquire`` can never overtake a task that is already
    queued. Use ``async with`` to guarantee the permit is returned when the
    holder fails.
    """

    def __init__(self, permits: int) -> None:
        if permits < 1:
            raise ValueError("permits must be at least 1")
        self._limit = permits
        self._permits = permits
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def available(self) -> int:
        """Number of permits that can be acquired without waiting."""
        return self._permits

    @property
    def waiting(self) -> int:
        """Number of tasks currently queued for a permit."""
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def acquire(self) -> None:
        """Wait until a permit is free and take it."""
        if self._permits > 0 and not self._waiters:
            self._permits -= 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The permit was handed over just before cancellation.
                self.release()
            else:
                self._remove_waiter(waiter)
            raise

    def release(self) -> None:
        """Return a permit, waking the oldest waiter if one is queued."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        if self._permits >= self._limit:
            raise ValueError("Semaphore released more times than acquired")
        self._permits += 1

    def _remove_waiter(self, waiter: "asyncio.Future[None]") -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass

    async def __aenter__(self) -> "Semaphore":
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
