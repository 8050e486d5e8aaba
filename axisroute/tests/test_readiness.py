"""
Test readiness classification, Fibonacci backoff and the polling lifecycle.
"""

import asyncio

import httpx

from ..clients.routing_service import classify_readiness
from ..models.state import EngineState, ReadinessState
from ..processing.readiness import ReadinessPoller
from ..processing.scheduler import FibonacciBackoff, PollingTask
from .fakes import FakeRoutingService, RecordingSleep


def _poller(service: FakeRoutingService, state: EngineState = None) -> ReadinessPoller:
    return ReadinessPoller(service.client(), state or EngineState(), sleep=RecordingSleep())


def test_classify_readiness():
    """Test free-text and JSON readiness bodies."""
    print("\n=== Testing Readiness Classification ===")

    assert classify_readiness("Ready") == ReadinessState.READY
    assert classify_readiness("  SERVICE READY\n") == ReadinessState.READY
    assert classify_readiness("please wait, loading graph") == ReadinessState.WAIT
    assert classify_readiness('{"status": "ready"}') == ReadinessState.READY
    assert classify_readiness('{"satus": "Wait"}') == ReadinessState.WAIT
    assert classify_readiness('"ready"') == ReadinessState.READY

    assert classify_readiness("") == ReadinessState.UNKNOWN
    assert classify_readiness("booting") == ReadinessState.UNKNOWN
    assert classify_readiness('{"state": "ready"}') == ReadinessState.UNKNOWN
    assert classify_readiness("42") == ReadinessState.UNKNOWN
    assert classify_readiness("[" * 100000) == ReadinessState.UNKNOWN

    print("✓ Readiness classification works")


def test_fibonacci_backoff():
    """Test the n-th delay is the n-th Fibonacci number and reset returns to the seed."""
    print("\n=== Testing Fibonacci Backoff ===")

    backoff = FibonacciBackoff()
    assert [backoff.next_delay() for _ in range(8)] == [1, 1, 2, 3, 5, 8, 13, 21]

    backoff.reset()
    assert backoff.state == (1, 1)
    assert backoff.next_delay() == 1

    print("✓ Fibonacci backoff works")


def test_tick_backoff_and_reset():
    """Test non-ready ticks back off and a Ready tick resets to the fixed interval."""
    print("\n=== Testing Readiness Tick Scheduling ===")

    async def scenario():
        service = FakeRoutingService()
        service.ready_responses.extend([
            "wait",
            "wait",
            "booting",
            httpx.ConnectError("connection refused"),
            httpx.Response(503, text="wait for graph"),
            "ready",
            "wait",
        ])
        poller = _poller(service)

        delays = [await poller.tick() for _ in range(7)]
        await poller.client.close()
        return delays, poller

    delays, poller = asyncio.run(scenario())

    assert delays[:5] == [1, 1, 2, 3, 5]
    assert delays[5] == 15.0
    assert delays[6] == 1
    assert poller.state.readiness == ReadinessState.WAIT

    print("✓ Readiness tick scheduling works")


def test_transport_failure_is_unknown():
    """Test transport failures publish Unknown and never raise."""
    print("\n=== Testing Readiness Transport Failure ===")

    async def scenario():
        service = FakeRoutingService()
        service.ready_responses.extend(["ready", httpx.ReadTimeout("timed out")])
        poller = _poller(service)
        await poller.tick()
        first = poller.state.readiness
        await poller.tick()
        await poller.client.close()
        return first, poller.state.readiness

    first, second = asyncio.run(scenario())
    assert first == ReadinessState.READY
    assert second == ReadinessState.UNKNOWN

    print("✓ Transport failure maps to Unknown")


def test_unreadable_response_is_unknown():
    """Test undecodable bodies and unexpected errors publish Unknown and back off."""
    print("\n=== Testing Unreadable Readiness Response ===")

    async def scenario():
        service = FakeRoutingService()
        service.ready_responses.extend([
            "ready",
            "[" * 100000,
            RuntimeError("decoder crashed"),
            "wait",
            "ready",
        ])
        poller = _poller(service)
        delays, states = [], []
        for _ in range(5):
            delays.append(await poller.tick())
            states.append(poller.state.readiness)
        await poller.client.close()
        return delays, states

    delays, states = asyncio.run(scenario())
    assert states == [
        ReadinessState.READY,
        ReadinessState.UNKNOWN,
        ReadinessState.UNKNOWN,
        ReadinessState.WAIT,
        ReadinessState.READY,
    ]
    assert delays == [15.0, 1, 1, 2, 15.0]

    print("✓ Unreadable response maps to Unknown")


def test_listeners_notified_on_transition_only():
    """Test subscribers see transitions, not repeated states."""
    print("\n=== Testing Readiness Listeners ===")

    async def scenario():
        service = FakeRoutingService()
        service.ready_responses.extend(["wait", "wait", "ready", "ready", "booting"])
        poller = _poller(service)
        seen = []
        poller.subscribe(lambda new, old: seen.append((old, new)))
        for _ in range(5):
            await poller.tick()
        await poller.client.close()
        return seen

    seen = asyncio.run(scenario())
    assert seen == [
        (ReadinessState.UNKNOWN, ReadinessState.WAIT),
        (ReadinessState.WAIT, ReadinessState.READY),
        (ReadinessState.READY, ReadinessState.UNKNOWN),
    ]

    print("✓ Readiness listeners work")


def test_stale_tick_is_discarded():
    """Test a response resolving after teardown does not change state."""
    print("\n=== Testing Stale Readiness Response ===")

    async def scenario():
        service = FakeRoutingService()
        state = EngineState()
        poller = _poller(service, state)
        state.stopped = True
        await poller.tick()
        await poller.client.close()
        return state.readiness

    assert asyncio.run(scenario()) == ReadinessState.UNKNOWN

    print("✓ Stale readiness response discarded")


def test_polling_task_runs_and_stops():
    """Test the poll loop sleeps the returned delays and stops on teardown."""
    print("\n=== Testing Polling Task Lifecycle ===")

    async def scenario():
        ticks = []
        release = asyncio.Event()

        async def tick():
            ticks.append(len(ticks))
            return float(len(ticks))

        sleeps = []

        async def sleep(delay):
            sleeps.append(delay)
            if len(sleeps) >= 3:
                # Park like a long backoff wait would
                await release.wait()

        task = PollingTask("test-poll", tick, sleep=sleep)
        task.start()
        for _ in range(10):
            await asyncio.sleep(0)
        assert task.running

        await task.stop()
        return ticks, sleeps, task

    ticks, sleeps, task = asyncio.run(scenario())
    assert ticks == [0, 1, 2]
    assert sleeps == [1.0, 2.0, 3.0]
    assert not task.running
    assert task.stopped

    print("✓ Polling task lifecycle works")


def test_polling_task_survives_tick_errors():
    """Test an exception in a tick is logged and the loop continues."""
    print("\n=== Testing Polling Task Error Recovery ===")

    async def scenario():
        calls = []

        async def tick():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 5.0

        sleeps = []
        done = asyncio.Event()

        async def sleep(delay):
            sleeps.append(delay)
            if len(sleeps) == 2:
                done.set()
                await asyncio.Event().wait()

        task = PollingTask("flaky-poll", tick, sleep=sleep, error_delay=0.25)
        task.start()
        await done.wait()
        await task.stop()
        return sleeps

    assert asyncio.run(scenario()) == [0.25, 5.0]

    print("✓ Polling task survives tick errors")


def test_poller_start_stop():
    """Test the readiness poller runs in the background and cancels cleanly."""
    print("\n=== Testing Readiness Poller Start/Stop ===")

    async def scenario():
        service = FakeRoutingService()
        service.ready_default = "wait"
        poller = _poller(service)
        poller.start()
        for _ in range(20):
            await asyncio.sleep(0)
        running = poller.running
        await poller.stop()
        await poller.client.close()
        return running, poller, service

    running, poller, service = asyncio.run(scenario())
    assert running
    assert not poller.running
    assert service.paths().count("/ready") >= 1
    assert poller.state.readiness == ReadinessState.WAIT

    print("✓ Readiness poller start/stop works")


def run_all_tests():
    """Run all readiness tests."""
    print("\n" + "=" * 60)
    print("READINESS POLLER - COMPREHENSIVE TEST SUITE")
    print("=" * 60)

    test_classify_readiness()
    test_fibonacci_backoff()
    test_tick_backoff_and_reset()
    test_transport_failure_is_unknown()
    test_unreadable_response_is_unknown()
    test_listeners_notified_on_transition_only()
    test_stale_tick_is_discarded()
    test_polling_task_runs_and_stops()
    test_polling_task_survives_tick_errors()
    test_poller_start_stop()

    print("\n" + "=" * 60)
    print("✅ ALL READINESS TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()
