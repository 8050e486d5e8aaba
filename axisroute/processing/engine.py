"""
Routing engine - the orchestration core behind the map UI.

Owns the single EngineState container and wires the readiness poll, travel
mode presets, stop set, route orchestration and blockage handling together.
The presentation layer reads snapshot() and feeds point_clicked() back in.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional

from ..clients.routing_service import RoutingServiceClient
from ..config import Config, EngineSettings
from ..errors import ConflictError
from ..models.geo import BlockageDraft, Point
from ..models.presets import TravelMode, preset_for
from ..models.state import EngineSnapshot, EngineState, ReadinessState, describe_pick
from ..utils.geometry import blocked_stop_labels, stop_label
from .axis_preset import AxisPresetController
from .blockages import BlockageConvergencePoller, BlockageManager
from .readiness import ReadinessPoller
from .route_orchestrator import RouteOrchestrator
from .scheduler import SleepFn
from .stops import StopSetModel

logger = logging.getLogger(__name__)


class RoutingEngine:
    """
    Client-side orchestration engine for the routing service.

    All work runs as tasks on one event loop. teardown() cancels the
    readiness timer and every background task, and marks the state stopped
    so late responses are discarded.
    """

    def __init__(
        self,
        client: RoutingServiceClient,
        settings: Optional[EngineSettings] = None,
        state: Optional[EngineState] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.client = client
        self.settings = settings or EngineSettings()
        self.state = state or EngineState()

        self.stops = StopSetModel(self.state)
        self.presets = AxisPresetController(client, self.state)
        self.orchestrator = RouteOrchestrator(client, self.state, self.presets)
        self.readiness = ReadinessPoller(
            client,
            self.state,
            ready_interval_seconds=self.settings.ready_interval_seconds,
            backoff_seed=self.settings.backoff_seed,
            sleep=sleep,
        )
        self.convergence = BlockageConvergencePoller(
            client,
            self.state,
            max_attempts=self.settings.convergence_attempts,
            delay_seconds=self.settings.convergence_delay_seconds,
            sleep=sleep,
        )
        self.blockages = BlockageManager(
            client,
            self.state,
            self.convergence,
            default_radius_meters=self.settings.default_radius_meters,
            min_radius_meters=self.settings.min_radius_meters,
            max_radius_meters=self.settings.max_radius_meters,
            radius_step_meters=self.settings.radius_step_meters,
        )

        self.readiness.subscribe(self._on_readiness_change)
        self._prev_all_set = self.state.all_stops_set
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, config: Config) -> "RoutingEngine":
        client = RoutingServiceClient(
            config.routing_api_base_url,
            road_types_base_url=config.road_types_api_base_url,
            timeout=config.engine.http_timeout_seconds,
        )
        return cls(client, settings=config.engine)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> Optional[asyncio.Task]:
        """Run a coroutine in the background, tracked for teardown."""
        if self.state.stopped:
            coro.close()
            return None
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._log_task_failure)
        return task

    @staticmethod
    def _log_task_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed", exc_info=exc)

    async def start(self) -> None:
        """Start the readiness poll and load the initial road types and blockages."""
        logger.info("Starting routing engine")
        self.readiness.start()
        self._spawn(self.presets.load_active(), "load-axis-types")
        self._spawn(self.blockages.load(), "load-blockages")

    async def wait_idle(self) -> None:
        """Wait until no background task is pending (the readiness poll excluded)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def teardown(self) -> None:
        """Stop everything; responses still in flight become no-ops."""
        logger.info("Tearing down routing engine")
        self.state.stopped = True
        await self.readiness.stop()

        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

        await self.client.close()

    # ------------------------------------------------------------------
    # Reactive wiring
    # ------------------------------------------------------------------

    def _on_readiness_change(self, readiness: ReadinessState, previous: ReadinessState) -> None:
        if readiness == ReadinessState.READY:
            self._spawn(self.presets.apply(), "apply-preset")

    def _after_stops_changed(self) -> None:
        """Auto-route on the rising edge of all-stops-set only."""
        all_set = self.state.all_stops_set
        rising = all_set and not self._prev_all_set
        self._prev_all_set = all_set
        if rising and self.orchestrator.can_route():
            logger.info("All stops set, routing automatically")
            self._spawn(self.orchestrator.compute_route(), "auto-route")

    # ------------------------------------------------------------------
    # Stop set and picking
    # ------------------------------------------------------------------

    def point_clicked(self, lat: float, long: float) -> Optional[str]:
        """Inbound map click from the rendering layer."""
        result = self.stops.set_via_click(lat, long)
        self._after_stops_changed()
        return result

    def pick_stop(self, index: int) -> None:
        self.stops.pick_stop(index)
        self._after_stops_changed()

    def pick_blockage_point(self) -> None:
        self.stops.pick_blockage_point()

    def cancel_pick(self) -> None:
        self.stops.cancel_pick()

    def set_stop(self, index: int, point: Point) -> None:
        self.stops.set_stop(index, point)
        self._after_stops_changed()

    def add_stop(self) -> None:
        self.stops.add()
        self._after_stops_changed()

    def delete_stop(self, index: int) -> None:
        self.stops.delete(index)
        self._after_stops_changed()

    def swap_stops(self) -> bool:
        swapped = self.stops.swap()
        self._after_stops_changed()
        return swapped

    def clear_stops(self) -> None:
        self.stops.clear()
        self._after_stops_changed()

    # ------------------------------------------------------------------
    # Travel mode and routing
    # ------------------------------------------------------------------

    async def set_mode(self, mode: TravelMode) -> None:
        """Change the travel mode; pushes the new preset when the service is ready."""
        if self.presets.set_mode(mode):
            await self.presets.apply()

    def blockage_error(self) -> Optional[str]:
        return self.orchestrator.blockage_conflict()

    async def request_route(self) -> bool:
        """
        Manual route request.

        Raises:
            ConflictError: a stop lies inside a blockage
        """
        conflict = self.blockage_error()
        if conflict:
            raise ConflictError(conflict)
        return await self.orchestrator.compute_route()

    async def get_axis_type(self, axis_type: str) -> Any:
        """Geometry preview of a single road category."""
        return await self.client.get_axis_type(axis_type)

    # ------------------------------------------------------------------
    # Blockages
    # ------------------------------------------------------------------

    def update_blockage_draft(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        radius_meters: Optional[float] = None,
    ) -> BlockageDraft:
        return self.blockages.update_draft(name=name, description=description, radius_meters=radius_meters)

    def clear_blockage_point(self) -> None:
        self.blockages.clear_draft_point()

    async def add_blockage(self) -> bool:
        return await self.blockages.add_from_draft()

    async def delete_blockage(self, name: str) -> bool:
        return await self.blockages.delete(name)

    async def set_show_blockages(self, show: bool) -> None:
        await self.blockages.set_show_blockages(show)

    # ------------------------------------------------------------------
    # Rendering boundary
    # ------------------------------------------------------------------

    def snapshot(self) -> EngineSnapshot:
        """Read-only view for the presentation layer."""
        state = self.state
        collection = state.blockages.collection
        blockage_error = self.blockage_error()
        error = " ".join(e for e in (state.error, blockage_error) if e) or None

        return EngineSnapshot(
            readiness=state.readiness,
            mode=state.mode,
            preset_axis_types=preset_for(state.mode),
            active_axis_types=list(state.active_axis_types),
            applying_preset=state.applying_preset,
            stops=list(state.stops),
            stop_labels=[stop_label(i) for i in range(len(state.stops))],
            pick_target=describe_pick(state.pick),
            routes=list(state.routes),
            routing=state.routing,
            route_error=state.route_error,
            error=error,
            can_route=self.orchestrator.can_route(),
            show_blockages=state.show_blockages,
            blockage_collection=collection,
            blockage_names=state.blockages.names(),
            blockages=state.blockages.list_blockages(),
            blocked_stop_labels=blocked_stop_labels(state.stops, collection),
            draft=state.draft,
            adding_blockage=state.adding_blockage,
            deleting_blockage_name=state.deleting_blockage_name,
        )
