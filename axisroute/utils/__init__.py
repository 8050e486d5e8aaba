"""Pure geometry and GeoJSON helpers."""
