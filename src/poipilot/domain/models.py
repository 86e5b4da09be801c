"""
Domain models (Pydantic).

These types are the contract between layers:
- normalized search results (`PointOfInterest`)
- derived route geometry (`Segment`)
- the payload handed to the simulator bridge (`PoiCoordinatesPayload`)
- API request/response bodies

The routing code works on `PointOfInterest` + `poipilot.core.geo.GeoPoint`;
`Coordinate` is the validated, range-checked form used at the API boundary.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from poipilot.core.geo import GeoPoint


class Coordinate(BaseModel):
    """A geographic point in decimal degrees (validated input form)."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def to_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)


class PointOfInterest(BaseModel):
    """A normalized place. `id` is stable per logical place (or synthesized from lat/lon)."""

    model_config = ConfigDict(frozen=True)

    id: str
    lat: float = Field(..., allow_inf_nan=False)
    lon: float = Field(..., allow_inf_nan=False)
    title: str

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)


class LatLon(BaseModel):
    lat: float
    lon: float


class Segment(BaseModel):
    """An edge between consecutive stops. Derived from a plan, never authoritative."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: LatLon = Field(..., alias="from")
    to: LatLon


class PoiCoordinatesPayload(BaseModel):
    """Ordered bare coordinates pushed to the simulator's native module."""

    type: Literal["POI_COORDINATES"] = "POI_COORDINATES"
    data: list[LatLon] = Field(default_factory=list)
    count: int = 0


class PlanRequest(BaseModel):
    start: Coordinate
    pois: list[dict[str, Any]] = Field(default_factory=list)
    dedup: bool = True
    settings_overrides: dict[str, Any] | None = None


class PlanResponse(BaseModel):
    start: Coordinate
    plan: list[PointOfInterest]
    segments: list[Segment]
    payload: PoiCoordinatesPayload
    meta: dict[str, Any] = Field(default_factory=dict)


class ArrivalCheckRequest(BaseModel):
    position: Coordinate
    plan: list[PointOfInterest] = Field(default_factory=list)
    visited: list[str] = Field(default_factory=list)
    threshold_km: float | None = Field(default=None, gt=0, le=5)


class ArrivalCheckResponse(BaseModel):
    arrived_id: str | None = None
    distance_km: float | None = None
    threshold_km: float
    visited: list[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    center: Coordinate
    pois: list[PointOfInterest]
    plan: list[PointOfInterest]
    payload: PoiCoordinatesPayload
    meta: dict[str, Any] = Field(default_factory=dict)
