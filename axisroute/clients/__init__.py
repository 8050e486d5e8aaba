"""API clients for external services."""

from .routing_service import RoutingServiceClient, classify_readiness

__all__ = [
    "RoutingServiceClient",
    "classify_readiness",
]
