"""
Cooperative scheduling primitives.

PollingTask runs a tick coroutine forever on the event loop, sleeping for
whatever delay each tick returns. It has a single teardown hook, stop(),
which cancels the pending sleep and makes any in-flight tick result a no-op.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class FibonacciBackoff:
    """
    Fibonacci retry delays in seconds: 1, 1, 2, 3, 5, 8, 13, ...

    next_delay() returns the current delay and advances one step;
    reset() returns to the seed.
    """

    def __init__(self, seed: tuple[int, int] = (1, 1)):
        self.seed = seed
        self._a, self._b = seed

    def next_delay(self) -> int:
        delay = self._a
        self._a, self._b = self._b, self._a + self._b
        return delay

    def reset(self) -> None:
        self._a, self._b = self.seed

    @property
    def state(self) -> tuple[int, int]:
        return self._a, self._b


class PollingTask:
    """
    Cancelable perpetual loop around a tick coroutine.

    The tick returns the delay in seconds before the next tick. Exceptions
    from a tick are logged and the loop continues after `error_delay`.
    """

    def __init__(
        self,
        name: str,
        tick: Callable[[], Awaitable[float]],
        sleep: SleepFn = asyncio.sleep,
        error_delay: float = 1.0,
    ):
        self.name = name
        self._tick = tick
        self._sleep = sleep
        self._error_delay = error_delay
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        """Schedule the loop on the running event loop. The first tick runs immediately."""
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def _run(self) -> None:
        try:
            while not self._stopped:
                try:
                    delay = await self._tick()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception(f"{self.name} tick failed")
                    delay = self._error_delay
                if self._stopped:
                    return
                await self._sleep(delay)
        except asyncio.CancelledError:
            logger.info(f"{self.name} cancelled")
            raise

    async def stop(self) -> None:
        """Cancel the pending tick or sleep and wait for the loop to exit."""
        self._stopped = True
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
