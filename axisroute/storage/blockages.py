"""
In-memory cache of the blockage collection.

Holds the last adopted GeoJSON FeatureCollection for the current session
only; nothing is persisted.
"""

from typing import Any, Optional

from pydantic import ValidationError

from ..models.geo import Blockage, Point
from ..utils.geo_payload import extract_names, feature_name, is_valid_shape, payloads_equal
from ..utils.geometry import parse_radius


class BlockageStore:
    """
    Session cache for the blockage collection.

    The collection is replaced wholesale; a refresh only adopts a payload
    that is a valid GeoJSON structure and differs from the held one.
    """

    def __init__(self, collection: Any = None):
        self._collection: Any = collection

    @property
    def collection(self) -> Any:
        return self._collection

    def adopt(self, collection: Any) -> None:
        """Replace the held collection unconditionally."""
        self._collection = collection

    def adopt_if_changed(self, collection: Any) -> bool:
        """
        Adopt a freshly fetched collection.

        Args:
            collection: Decoded payload from the service

        Returns:
            True if the held collection was replaced
        """
        if not is_valid_shape(collection):
            return False
        if payloads_equal(self._collection, collection):
            return False
        self._collection = collection
        return True

    def names(self) -> list[str]:
        """Unique blockage names in first-seen order."""
        return extract_names(self._collection)

    def list_blockages(self) -> list[Blockage]:
        """Materialize named Point features as Blockage models."""
        features = (self._collection or {}).get("features") if isinstance(self._collection, dict) else None
        if not isinstance(features, list):
            return []

        blockages: list[Blockage] = []
        for feature in features:
            blockage = _to_blockage(feature)
            if blockage is not None:
                blockages.append(blockage)
        return blockages


def _to_blockage(feature: Any) -> Optional[Blockage]:
    name = feature_name(feature)
    if not isinstance(name, str) or not name.strip():
        return None
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates") if geometry.get("type") == "Point" else None
    if not isinstance(coords, list) or len(coords) < 2:
        return None

    props = feature.get("properties") or {}
    description = props.get("description")
    try:
        return Blockage(
            name=name.strip(),
            description=description if isinstance(description, str) else "",
            center=Point(lat=coords[1], long=coords[0]),
            radius_meters=parse_radius(props),
        )
    except ValidationError:
        return None
