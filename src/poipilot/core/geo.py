from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, isfinite, radians, sin, sqrt
from typing import Any

"""
Geospatial helpers.

Everything that needs a distance (normalizer dedup, planner, arrival tracker)
goes through this module so the Earth model stays in one place.
"""

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle (haversine) distance in kilometers between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points.
    return 2 * EARTH_RADIUS_KM * asin(sqrt(min(1.0, h)))


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Same as `distance_km`, in meters."""
    return distance_km(a, b) * 1000.0


def is_valid_point(lat: Any, lon: Any) -> bool:
    """True when both components are finite real numbers (bools excluded)."""
    for v in (lat, lon):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return False
        if not isfinite(v):
            return False
    return True


def as_geo_point(value: Any) -> GeoPoint | None:
    """Best-effort conversion of a point-like value (GeoPoint, mapping, object with lat/lon)."""
    if isinstance(value, GeoPoint):
        return value if is_valid_point(value.lat, value.lon) else None
    if value is None:
        return None
    if isinstance(value, dict):
        lat, lon = value.get("lat"), value.get("lon")
    else:
        lat, lon = getattr(value, "lat", None), getattr(value, "lon", None)
    if not is_valid_point(lat, lon):
        return None
    return GeoPoint(lat=float(lat), lon=float(lon))
