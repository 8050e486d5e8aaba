"""Orchestration engine: readiness, stops, routing and blockages."""

from .engine import RoutingEngine
from .scheduler import FibonacciBackoff, PollingTask
from .readiness import ReadinessPoller
from .stops import StopSetModel
from .axis_preset import AxisPresetController
from .route_orchestrator import RouteOrchestrator
from .blockages import BlockageConvergencePoller, BlockageManager

__all__ = [
    "RoutingEngine",
    "FibonacciBackoff",
    "PollingTask",
    "ReadinessPoller",
    "StopSetModel",
    "AxisPresetController",
    "RouteOrchestrator",
    "BlockageConvergencePoller",
    "BlockageManager",
]
