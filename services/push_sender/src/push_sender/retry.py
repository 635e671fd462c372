"""Backoff strategy between provider delivery attempts."""

import asyncio
from collections.abc import Awaitable, Callable

Sleep = Callable[[float], Awaitable[None]]


class ExponentialBackoff:
    """Waits ``base ** attempt`` seconds after failed attempt *attempt* (1-based).

    The sleep coroutine is injectable so tests can substitute a no-op.
    """

    def __init__(self, base: float = 2.0, sleep: Sleep = asyncio.sleep) -> None:
        self._base = base
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self._base ** attempt

    async def wait(self, attempt: int) -> float:
        delay = self.delay_for(attempt)
        await self._sleep(delay)
        return delay
