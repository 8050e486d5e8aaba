"""Pydantic models and state containers for the routing engine."""

from .geo import (
    Point,
    Blockage,
    BlockageDraft,
    RouteSegmentResult,
    RouteRequestBody,
)
from .presets import (
    TravelMode,
    TRAVEL_MODE_LABEL,
    MODE_TO_AXIS_TYPES,
    preset_for,
    axis_key,
)
from .state import (
    ReadinessState,
    NoPick,
    PickStop,
    PickBlockagePoint,
    PickTarget,
    EngineState,
    EngineSnapshot,
    describe_pick,
)

__all__ = [
    # Geographic values
    "Point",
    "Blockage",
    "BlockageDraft",
    "RouteSegmentResult",
    "RouteRequestBody",
    # Travel modes
    "TravelMode",
    "TRAVEL_MODE_LABEL",
    "MODE_TO_AXIS_TYPES",
    "preset_for",
    "axis_key",
    # Engine state
    "ReadinessState",
    "NoPick",
    "PickStop",
    "PickBlockagePoint",
    "PickTarget",
    "EngineState",
    "EngineSnapshot",
    "describe_pick",
]
