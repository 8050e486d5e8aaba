"""Engine state container and the read-only snapshot handed to the presentation layer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from ..storage.blockages import BlockageStore
from ..utils.geometry import stop_label
from .geo import Blockage, BlockageDraft, Point, RouteSegmentResult
from .presets import TravelMode


class ReadinessState(str, Enum):
    """Readiness of the remote routing service."""
    READY = "Ready"
    WAIT = "Wait"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class NoPick:
    """No pick mode active: clicks fill the first unset stop."""


@dataclass(frozen=True)
class PickStop:
    """The next click sets this stop."""
    index: int


@dataclass(frozen=True)
class PickBlockagePoint:
    """The next click sets the blockage draft centre."""


PickTarget = Union[NoPick, PickStop, PickBlockagePoint]


def describe_pick(target: PickTarget) -> Optional[str]:
    """Pick mode as shown to the user, e.g. "stop B" or "blockage"."""
    if isinstance(target, PickStop):
        return f"stop {stop_label(target.index)}"
    if isinstance(target, PickBlockagePoint):
        return "blockage"
    return None


@dataclass
class EngineState:
    """
    Single owned state container for the orchestration engine.

    Components receive it by reference and mutate it through their own
    transition methods. All mutations happen on one event loop thread.
    """

    readiness: ReadinessState = ReadinessState.UNKNOWN
    mode: TravelMode = TravelMode.CAR
    active_axis_types: list[str] = field(default_factory=list)
    applying_preset: bool = False

    stops: list[Optional[Point]] = field(default_factory=lambda: [None, None])
    pick: PickTarget = field(default_factory=NoPick)

    routes: list[RouteSegmentResult] = field(default_factory=list)
    routing: bool = False
    route_error: Optional[str] = None
    error: Optional[str] = None

    blockages: BlockageStore = field(default_factory=BlockageStore)
    show_blockages: bool = True
    draft: BlockageDraft = field(default_factory=BlockageDraft)
    adding_blockage: bool = False
    deleting_blockage_name: Optional[str] = None

    # Bumped whenever displayed routes are invalidated; in-flight routing
    # runs compare against it before appending.
    route_epoch: int = 0
    stopped: bool = False

    @property
    def all_stops_set(self) -> bool:
        return len(self.stops) >= 2 and all(stop is not None for stop in self.stops)

    def clear_routes(self) -> None:
        """Drop displayed routes and route error; routes are never stale."""
        self.routes = []
        self.route_error = None
        self.route_epoch += 1


class EngineSnapshot(BaseModel):
    """Read-only view of the engine consumed by the rendering layer."""
    readiness: ReadinessState
    mode: TravelMode
    preset_axis_types: list[str]
    active_axis_types: list[str]
    applying_preset: bool
    stops: list[Optional[Point]]
    stop_labels: list[str]
    pick_target: Optional[str] = Field(description='"stop <label>", "blockage" or None')
    routes: list[RouteSegmentResult]
    routing: bool
    route_error: Optional[str]
    error: Optional[str] = Field(description="General error joined with the blockage conflict message")
    can_route: bool
    show_blockages: bool
    blockage_collection: Any
    blockage_names: list[str]
    blockages: list[Blockage] = Field(description="Named point blockages with their parsed radius")
    blocked_stop_labels: list[str]
    draft: BlockageDraft
    adding_blockage: bool
    deleting_blockage_name: Optional[str]
