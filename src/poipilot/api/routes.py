"""
API routes.

Endpoints:
- GET  `/api/health`: liveness.
- GET  `/api/settings`: public routing/search settings.
- GET  `/api/pois/search`: geosearch around a coordinate, normalized + deduped + ordered.
- GET  `/api/pois/summary/{title}`: encyclopedia summary for one POI.
- POST `/api/route/plan`: nearest-neighbor plan for caller-supplied POIs.
- POST `/api/route/check-arrival`: one arrival check against a plan.

The API is stateless; live tracking state lives in `poipilot.tracking`.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query

from poipilot.config.overrides import apply_settings_overrides
from poipilot.config.settings import get_settings
from poipilot.core.geo import GeoPoint
from poipilot.domain.models import (
    ArrivalCheckRequest,
    ArrivalCheckResponse,
    Coordinate,
    PlanRequest,
    PlanResponse,
    SearchResponse,
)
from poipilot.explorer import build_cache, prepare_candidates
from poipilot.ingestion.wikipedia_client import WikipediaClient
from poipilot.routing.export import build_poi_coordinates_payload
from poipilot.routing.planner import plan_route, route_segments
from poipilot.routing.tracker import check_arrival

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _client() -> WikipediaClient:
    settings = get_settings()
    return WikipediaClient(settings, build_cache(settings))


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok"}


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return the knobs a panel needs (no URLs, no cache paths)."""
    settings = get_settings()
    return {
        "app": {"name": settings.app.name},
        "search": settings.search.model_dump(include={"language", "radius_m", "limit", "dedup_km"}),
        "routing": settings.routing.model_dump(mode="json"),
        "host": settings.host.model_dump(include={"auto_pause", "pulse_seconds"}),
    }


@router.get("/api/pois/search", response_model=SearchResponse)
def search_pois(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius_m: int | None = Query(default=None, ge=10, le=10_000),
    limit: int | None = Query(default=None, ge=1, le=500),
) -> SearchResponse:
    """Search near (lat, lon) and return the cleaned candidates plus their visiting order."""
    settings = get_settings()
    center = GeoPoint(lat=lat, lon=lon)
    raw = _client().geosearch(center, radius_m=radius_m, limit=limit)
    pois, stats = prepare_candidates(raw, dedup_km=settings.search.dedup_km)
    plan = plan_route(center, pois)
    return SearchResponse(
        center=Coordinate(lat=lat, lon=lon),
        pois=pois,
        plan=plan,
        payload=build_poi_coordinates_payload(plan),
        meta={"candidates": stats.as_dict()},
    )


@router.get("/api/pois/summary/{title:path}")
def get_summary(title: str) -> dict:
    summary = _client().summary(title)
    if summary is None:
        raise HTTPException(status_code=404, detail={"code": "NOT_FOUND", "message": f"No summary for {title!r}"})
    return summary


@router.post("/api/route/plan", response_model=PlanResponse)
def post_plan(request: PlanRequest) -> PlanResponse:
    """Normalize caller-supplied POIs and order them nearest-first from `start`."""
    try:
        settings = apply_settings_overrides(get_settings(), request.settings_overrides)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e

    try:
        start = request.start.to_point()
        dedup_km = settings.search.dedup_km if request.dedup else None
        pois, stats = prepare_candidates(request.pois, dedup_km=dedup_km)
        plan = plan_route(start, pois)
        return PlanResponse(
            start=request.start,
            plan=plan,
            segments=route_segments(start, plan),
            payload=build_poi_coordinates_payload(plan),
            meta={"candidates": stats.as_dict(), "arrival_threshold_km": settings.routing.arrival_threshold_km},
        )
    except Exception as e:
        logger.exception("Route planning failed")
        raise HTTPException(status_code=500, detail={"code": "INTERNAL_ERROR", "message": str(e)}) from e


@router.post("/api/route/check-arrival", response_model=ArrivalCheckResponse)
def post_check_arrival(request: ArrivalCheckRequest) -> ArrivalCheckResponse:
    """Stateless arrival check; the caller keeps `visited` between calls."""
    settings = get_settings()
    threshold = request.threshold_km or settings.routing.arrival_threshold_km
    visited = set(request.visited)
    check = check_arrival(request.position.to_point(), request.plan, visited, threshold)
    return ArrivalCheckResponse(
        arrived_id=check.arrived_id,
        distance_km=check.distance_km,
        threshold_km=threshold,
        visited=sorted(visited),
    )
