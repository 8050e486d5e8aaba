"""AxisRoute - client-side orchestration core for a map-based routing tool."""

__version__ = "1.0.0"
