"""
Readiness polling for the routing service.

While the service is not ready the poll backs off along a Fibonacci
sequence in seconds; once ready it resets and polls at a fixed interval.
"""

import asyncio
import logging
from typing import Callable

from ..clients.routing_service import RoutingServiceClient
from ..errors import TransportError
from ..models.state import EngineState, ReadinessState
from .scheduler import FibonacciBackoff, PollingTask, SleepFn

logger = logging.getLogger(__name__)

ReadinessListener = Callable[[ReadinessState, ReadinessState], None]


class ReadinessPoller:
    """
    Perpetual background poll of GET /ready.

    Publishes every readiness transition to subscribers as (new, previous).
    Transport and decode failures count as Unknown and never stop the loop.
    """

    def __init__(
        self,
        client: RoutingServiceClient,
        state: EngineState,
        ready_interval_seconds: float = 15.0,
        backoff_seed: tuple[int, int] = (1, 1),
        sleep: SleepFn = asyncio.sleep,
    ):
        self.client = client
        self.state = state
        self.ready_interval_seconds = ready_interval_seconds
        self.backoff = FibonacciBackoff(backoff_seed)
        self._listeners: list[ReadinessListener] = []
        self._task = PollingTask("readiness-poll", self.tick, sleep=sleep)

    def subscribe(self, listener: ReadinessListener) -> None:
        """Register a callback for readiness transitions."""
        self._listeners.append(listener)

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    @property
    def running(self) -> bool:
        return self._task.running

    async def tick(self) -> float:
        """
        Poll once and return the delay before the next poll.

        Returns:
            The fixed ready interval when Ready, otherwise the next
            Fibonacci backoff delay in seconds
        """
        try:
            readiness = await self.client.get_ready()
        except TransportError as e:
            logger.debug(f"Readiness check failed: {e}")
            readiness = ReadinessState.UNKNOWN
        except Exception as e:
            logger.warning(f"Unreadable readiness response: {e!r}")
            readiness = ReadinessState.UNKNOWN

        if self._task.stopped or self.state.stopped:
            return 0.0

        self.publish(readiness)

        if readiness == ReadinessState.READY:
            self.backoff.reset()
            return self.ready_interval_seconds

        delay = self.backoff.next_delay()
        logger.info(f"Routing service is {readiness.value}, next check in {delay}s")
        return delay

    def publish(self, readiness: ReadinessState) -> None:
        """Store the latest readiness and notify listeners on a transition."""
        previous = self.state.readiness
        self.state.readiness = readiness
        if readiness == previous:
            return

        logger.info(f"Routing service readiness: {previous.value} -> {readiness.value}")
        for listener in list(self._listeners):
            try:
                listener(readiness, previous)
            except Exception:
                logger.exception("Readiness listener failed")
