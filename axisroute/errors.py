"""Error taxonomy for the routing engine.

Every error is turned into a user-visible string at the engine's action
boundary; none of them stop the readiness poll or the session.
"""


class RoutingEngineError(Exception):
    """Base class for engine errors."""
    pass


class TransportError(RoutingEngineError):
    """Network or HTTP failure talking to the routing service."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ShapeError(RoutingEngineError):
    """Payload is not a recognized GeoJSON structure."""
    pass


class NotFoundError(RoutingEngineError):
    """Payload has a valid shape but no usable route geometry."""
    pass


class ConvergenceTimeout(RoutingEngineError):
    """Blockage list never reflected a write within the retry budget."""
    pass


class ConflictError(RoutingEngineError):
    """A stop lies inside a blockage; routing is refused before any request."""
    pass
