"""Geographic value models exchanged with the routing service."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    """A stop or blockage centre. Replaced wholesale, never mutated."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(description="Latitude in decimal degrees", ge=-90, le=90)
    long: float = Field(description="Longitude in decimal degrees", ge=-180, le=180)


class Blockage(BaseModel):
    """A named circular exclusion zone materialized from a feature collection."""
    name: str = Field(description="Unique name, also the delete key")
    description: str = ""
    center: Point
    radius_meters: Optional[float] = Field(default=None, description="None when absent or unparsable")


class BlockageDraft(BaseModel):
    """Blockage being composed before it is written to the service."""
    point: Optional[Point] = Field(default=None, description="Set by a map click in blockage pick mode")
    name: str = ""
    description: str = ""
    radius_meters: float = Field(default=200, gt=0, description="Circle radius in metres")


class RouteSegmentResult(BaseModel):
    """Validated geometry for one consecutive stop pair."""
    index: int = Field(description="Segment index, 0 for A -> B")
    start_label: str
    end_label: str
    payload: Any = Field(description="GeoJSON payload as returned by the service")


class RouteRequestBody(BaseModel):
    """Body of a single route segment request."""
    startPt: Point
    endPt: Point
