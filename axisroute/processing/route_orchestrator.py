"""
Multi-stop route orchestration.

Requests one route segment per adjacent stop pair, strictly in order, and
appends each validated segment to the displayed routes as soon as it
arrives. The first invalid or empty segment aborts the run.
"""

import logging
from typing import Any

from ..clients.routing_service import RoutingServiceClient
from ..errors import NotFoundError, ShapeError, TransportError
from ..models.geo import RouteSegmentResult
from ..models.state import EngineState, ReadinessState
from ..utils.geo_payload import has_route_geometry, is_valid_shape
from ..utils.geometry import blockage_conflict_message, stop_label
from .axis_preset import AxisPresetController

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND = "Route not found."
ROUTING_FAILED = "Routing failed."


def validate_segment(index: int, payload: Any) -> RouteSegmentResult:
    """
    Validate one segment payload.

    Raises:
        ShapeError: payload is not recognized GeoJSON
        NotFoundError: payload has no line or polygon geometry
    """
    start_label, end_label = stop_label(index), stop_label(index + 1)
    if not is_valid_shape(payload):
        raise ShapeError(f"Route segment {start_label} → {end_label} is invalid.")
    if not has_route_geometry(payload):
        raise NotFoundError(ROUTE_NOT_FOUND)
    return RouteSegmentResult(
        index=index,
        start_label=start_label,
        end_label=end_label,
        payload=payload,
    )


class RouteOrchestrator:
    """Sequential, fail-fast routing over the current stop set."""

    def __init__(
        self,
        client: RoutingServiceClient,
        state: EngineState,
        presets: AxisPresetController,
    ):
        self.client = client
        self.state = state
        self.presets = presets

    def blockage_conflict(self) -> str | None:
        """Message naming the first stop inside a blockage, if any."""
        return blockage_conflict_message(self.state.stops, self.state.blockages.collection)

    def can_route(self) -> bool:
        """Whether a routing run may start now."""
        return (
            not self.state.stopped
            and self.state.all_stops_set
            and self.state.readiness == ReadinessState.READY
            and not self.state.routing
            and self.blockage_conflict() is None
        )

    def _is_current(self, epoch: int) -> bool:
        return not self.state.stopped and self.state.route_epoch == epoch

    async def compute_route(self) -> bool:
        """
        Route through every stop in order.

        A no-op unless can_route(). Errors end up on state.route_error
        (invalid or empty segment) or state.error (transport failure).

        Returns:
            True if every segment was routed
        """
        if not self.can_route():
            return False

        self.state.routing = True
        self.state.error = None
        self.state.clear_routes()
        epoch = self.state.route_epoch
        stops = list(self.state.stops)

        try:
            if not self.presets.is_reconciled():
                # Mode changed faster than the readiness-triggered push
                logger.info("Active road types differ from preset, pushing preset before routing")
                await self.presets.push(self.presets.preset)
                if not self._is_current(epoch):
                    return False

            for index in range(len(stops) - 1):
                start, end = stops[index], stops[index + 1]
                if start is None or end is None:
                    continue

                payload = await self.client.get_route(start, end)
                if not self._is_current(epoch):
                    logger.info("Stops changed while routing, dropping stale segment")
                    return False

                segment = validate_segment(index, payload)
                self.state.routes = [*self.state.routes, segment]
                logger.info(f"Routed segment {segment.start_label} → {segment.end_label}")

            return True

        except ShapeError as e:
            logger.warning(str(e))
            self.state.routes = []
            self.state.route_error = str(e)
        except NotFoundError as e:
            logger.warning(f"{e} ({len(self.state.routes)} segments kept)")
            self.state.route_error = str(e)
        except TransportError as e:
            logger.warning(f"Routing failed: {e}")
            if self._is_current(epoch):
                self.state.error = str(e) or ROUTING_FAILED
        except Exception:
            logger.exception("Routing failed on an unexpected response")
            if self._is_current(epoch):
                self.state.error = ROUTING_FAILED
        finally:
            self.state.routing = False

        return False
