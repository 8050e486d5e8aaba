"""Travel modes and their permitted road-type (axis type) presets."""

from enum import Enum


class TravelMode(str, Enum):
    """Travel mode selected by the user."""
    CAR = "car"
    BICYCLE = "bicycle"
    WALK = "walk"


TRAVEL_MODE_LABEL: dict[TravelMode, str] = {
    TravelMode.CAR: "Car",
    TravelMode.BICYCLE: "Bicycle",
    TravelMode.WALK: "Walk",
}

# Every preset keeps residential/road connectors so the graph stays connected.
MODE_TO_AXIS_TYPES: dict[TravelMode, tuple[str, ...]] = {
    TravelMode.CAR: (
        "motorway",
        "motorway_link",
        "trunk",
        "trunk_link",
        "primary",
        "primary_link",
        "secondary",
        "secondary_link",
        "tertiary",
        "tertiary_link",
        "unclassified",
        "residential",
        "living_street",
        "road",
    ),
    TravelMode.BICYCLE: (
        "cycleway",
        "path",
        "footway",
        "pedestrian",
        "crossing",
        "track",
        "bridleway",
        "tertiary",
        "tertiary_link",
        "secondary",
        "secondary_link",
        "primary",
        "primary_link",
        "unclassified",
        "residential",
        "living_street",
        "road",
        "service",
    ),
    TravelMode.WALK: (
        "footway",
        "path",
        "pedestrian",
        "steps",
        "crossing",
        "corridor",
        "living_street",
        "residential",
        "service",
        "track",
        "road",
        "elevator",
    ),
}


def preset_for(mode: TravelMode) -> list[str]:
    """Return the preset axis types for a travel mode, in push order."""
    return list(MODE_TO_AXIS_TYPES[TravelMode(mode)])


def axis_key(axis_types: list[str]) -> str:
    """Token-sequence key used to compare the active set against a preset."""
    return "|".join(axis_types)
