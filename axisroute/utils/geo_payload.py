"""
GeoJSON payload classification.

The routing service returns loosely typed GeoJSON; these helpers decide
whether a decoded payload is a recognized structure and whether it carries
drawable route geometry.
"""

import json
from typing import Any

GEOMETRY_TYPES = frozenset({
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
})

# Point/MultiPoint alone never count as a route
ROUTE_GEOMETRY_TYPES = frozenset({
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
})

# Feature name lookup order for blockage collections
NAME_PROPERTIES = ("name", "blockage_name", "id")


def _geometry_type(feature: Any) -> Any:
    if not isinstance(feature, dict):
        return None
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        return None
    return geometry.get("type")


def is_valid_shape(data: Any) -> bool:
    """
    Check that a payload is a recognized GeoJSON structure.

    Accepts a FeatureCollection with a list of features, a Feature whose
    geometry type is known, or a bare geometry of a known type.
    """
    if not isinstance(data, dict):
        return False

    geo_type = data.get("type")
    if geo_type == "FeatureCollection":
        return isinstance(data.get("features"), list)

    if geo_type == "Feature":
        return _geometry_type(data) in GEOMETRY_TYPES

    return geo_type in GEOMETRY_TYPES


def has_route_geometry(data: Any) -> bool:
    """True if at least one contained geometry is a line or polygon."""
    if not isinstance(data, dict):
        return False

    geo_type = data.get("type")
    if geo_type == "FeatureCollection" and isinstance(data.get("features"), list):
        return any(_geometry_type(f) in ROUTE_GEOMETRY_TYPES for f in data["features"])

    if geo_type == "Feature":
        return _geometry_type(data) in ROUTE_GEOMETRY_TYPES

    return geo_type in ROUTE_GEOMETRY_TYPES


def feature_name(feature: Any) -> Any:
    """First non-null name property of a feature, or None."""
    if not isinstance(feature, dict):
        return None
    props = feature.get("properties")
    if not isinstance(props, dict):
        return None
    for key in NAME_PROPERTIES:
        if props.get(key) is not None:
            return props[key]
    return None


def extract_names(collection: Any) -> list[str]:
    """
    Collect blockage names from a FeatureCollection.

    Names are trimmed, empty and non-string values dropped, and duplicates
    removed keeping first-seen order.
    """
    if not isinstance(collection, dict):
        return []
    features = collection.get("features")
    if not isinstance(features, list):
        return []

    names: list[str] = []
    for feature in features:
        name = feature_name(feature)
        if not isinstance(name, str) or not name.strip():
            continue
        name = name.strip()
        if name not in names:
            names.append(name)
    return names


def payloads_equal(a: Any, b: Any) -> bool:
    """
    Structural equality by serialized form.

    Not geometry-aware: any formatting difference, e.g. key order, counts as
    a change.
    """
    if a is b:
        return True
    if a is None or b is None:
        return False
    try:
        return json.dumps(a) == json.dumps(b)
    except (TypeError, ValueError):
        return False
