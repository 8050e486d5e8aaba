"""
Great-circle math and blockage containment.

Only Point-geometry blockages with a positive radius are enforced as
obstacles; polygon and line blockages are displayed but never block a stop.
"""

import math
import re
from typing import Any, Optional, Sequence

EARTH_RADIUS_M = 6371000

# Property carrying the blockage radius, as named by the routing service
RADIUS_PROPERTY = "distance (meters)"

_NON_NUMERIC = re.compile(r"[^0-9.]")


def stop_label(index: int) -> str:
    """Letter label of a stop: 0 -> "A", 1 -> "B", ..."""
    return chr(ord("A") + index)


def great_circle_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine distance between two points.

    Args:
        lat1, lng1: First point in decimal degrees
        lat2, lng2: Second point in decimal degrees

    Returns:
        Distance in meters
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    sin_lat = math.sin(d_lat / 2)
    sin_lng = math.sin(d_lng / 2)
    a = sin_lat * sin_lat + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * sin_lng * sin_lng
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


def parse_radius(props: Any) -> Optional[float]:
    """
    Read the blockage radius from feature properties.

    Accepts a number or a string such as "250 m"; every character outside
    [0-9.] is stripped before parsing. Returns None when absent or not finite.
    """
    if not isinstance(props, dict):
        return None
    raw = props.get(RADIUS_PROPERTY)
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, str):
        cleaned = _NON_NUMERIC.sub("", raw)
        try:
            radius = float(cleaned)
        except ValueError:
            return None
    elif isinstance(raw, (int, float)):
        radius = float(raw)
    else:
        return None

    return radius if math.isfinite(radius) else None


def _features(collection: Any) -> list:
    if not isinstance(collection, dict):
        return []
    geo_type = collection.get("type")
    if geo_type == "FeatureCollection" and isinstance(collection.get("features"), list):
        return collection["features"]
    if geo_type == "Feature":
        return [collection]
    return []


def is_inside_any_blockage(point: Any, collection: Any) -> bool:
    """
    Check whether a point lies inside any circular blockage.

    Args:
        point: Object with .lat and .long, or None
        collection: GeoJSON FeatureCollection or single Feature

    Returns:
        True if the great-circle distance to any blockage centre is within
        that blockage's radius
    """
    if point is None or not collection:
        return False

    for feature in _features(collection):
        geometry = feature.get("geometry") if isinstance(feature, dict) else None
        if not isinstance(geometry, dict) or geometry.get("type") != "Point":
            continue
        coords = geometry.get("coordinates")
        if not isinstance(coords, list) or len(coords) < 2:
            continue
        lng, lat = coords[0], coords[1]
        if not all(isinstance(c, (int, float)) for c in (lng, lat)):
            continue
        radius = parse_radius(feature.get("properties"))
        if not radius or radius <= 0:
            continue
        if great_circle_meters(point.lat, point.long, lat, lng) <= radius:
            return True

    return False


def blocked_stop_labels(stops: Sequence[Any], collection: Any) -> list[str]:
    """Labels of every stop that sits inside a blockage."""
    return [
        stop_label(i)
        for i, stop in enumerate(stops)
        if is_inside_any_blockage(stop, collection)
    ]


def blockage_conflict_message(stops: Sequence[Any], collection: Any) -> Optional[str]:
    """User message for the first blocked stop, or None when routing is allowed."""
    labels = blocked_stop_labels(stops, collection)
    if not labels:
        return None
    return f"Stop {labels[0]} is inside a blockage."
