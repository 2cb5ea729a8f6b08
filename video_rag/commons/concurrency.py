"""Async coordination primitives: polling, rate limiting and locking."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

T = TypeVar("T")


class PollTimeoutError(TimeoutError):
    """Raised when a polled operation does not finish before its deadline."""

    def __init__(self, attempts: int, timeout: float) -> None:
        self.attempts = attempts
        self.timeout = timeout
        super().__init__(f"Gave up after {attempts} attempts ({timeout:.0f}s)")


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    *,
    interval: float,
    timeout: float,
    cancel_event: asyncio.Event | None = None,
) -> T:
    """Call fetch until is_done accepts its result.

    Args:
        fetch: Coroutine factory returning the latest state.
        is_done: Predicate deciding whether the state is final.
        interval: Seconds to wait between attempts.
        timeout: Overall deadline in seconds.
        cancel_event: Optional event that aborts the wait when set.

    Returns:
        The first state accepted by is_done.

    Raises:
        PollTimeoutError: If the deadline passes first.
        asyncio.CancelledError: If cancel_event is set or the task is cancelled.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise asyncio.CancelledError("Polling cancelled")

        attempts += 1
        state = await fetch()
        if is_done(state):
            return state

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise PollTimeoutError(attempts, timeout)

        delay = min(interval, remaining)
        if cancel_event is None:
            await asyncio.sleep(delay)
            continue

        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except TimeoutError:
            continue
        raise asyncio.CancelledError("Polling cancelled")


class RateLimiter:
    """Async token bucket.

    Tokens refill continuously at `rate` per second up to `burst`; each
    acquire consumes one token, waiting for the refill when the bucket is
    empty. A limiter built with `rate=None` never waits.
    """

    def __init__(self, rate: float | None, burst: int = 1) -> None:
        if rate is not None and rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = rate
        self.burst = burst
        self._tokens = float(burst)
        self._updated_at: float | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def unlimited(cls) -> "RateLimiter":
        """Build a limiter that never waits."""
        return cls(rate=None)

    async def acquire(self) -> None:
        """Take one token, sleeping until one is available."""
        if self.rate is None:
            return

        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            if self._updated_at is not None:
                elapsed = now - self._updated_at
                self._tokens = min(self.burst, self._tokens + elapsed * self.rate)
            self._updated_at = now

            if self._tokens < 1:
                wait = (1 - self._tokens) / self.rate
                await asyncio.sleep(wait)
                self._updated_at = loop.time()
                self._tokens = 1.0

            self._tokens -= 1

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, *args: object) -> None:
        return None


class LockBusyError(RuntimeError):
    """Raised when a keyed lock is already held."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Lock for '{key}' is already held")


class KeyedLock:
    """Non-blocking mutual exclusion per key."""

    def __init__(self) -> None:
        self._held: set[str] = set()

    def locked(self, key: str) -> bool:
        """Whether the key is currently held."""
        return key in self._held

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the key for the duration of the block.

        Raises:
            LockBusyError: If another task already holds the key.
        """
        # check-and-add has no await in between, so it is atomic on the loop
        if key in self._held:
            raise LockBusyError(key)
        self._held.add(key)
        try:
            yield
        finally:
            self._held.discard(key)


class ReadWriteLock:
    """Shared/exclusive lock with writer preference.

    Any number of shared holders may run together; an exclusive holder runs
    alone. Waiting writers block new shared holders.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def shared(self) -> AsyncIterator[None]:
        """Hold the lock in shared mode."""
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold the lock in exclusive mode."""
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            finally:
                self._writers_waiting -= 1
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()
