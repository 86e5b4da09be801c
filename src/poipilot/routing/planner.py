"""
Greedy nearest-neighbor route planning.

The plan is a stop order, recomputed from scratch whenever the remaining set or
the operative start fix changes. It is O(n^2) and not an optimal tour; POI
counts are in the tens, so that is fine.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from poipilot.core.geo import GeoPoint, distance_km
from poipilot.domain.models import LatLon, PointOfInterest, Segment


def plan_route(start: GeoPoint, remaining: Iterable[PointOfInterest]) -> list[PointOfInterest]:
    """Order `remaining` by repeatedly taking the closest unvisited stop.

    Ties go to the earliest candidate in input order. `start` must hold finite
    coordinates; callers guard that (see `poipilot.core.geo.is_valid_point`).
    The input is not mutated.
    """
    pool = list(remaining)
    order: list[PointOfInterest] = []
    cursor = start

    while pool:
        best_idx = 0
        best_dist = float("inf")
        for i, cand in enumerate(pool):
            d = distance_km(cursor, cand.point)
            if d < best_dist:
                best_dist = d
                best_idx = i
        chosen = pool.pop(best_idx)
        order.append(chosen)
        cursor = chosen.point

    return order


def route_segments(start: GeoPoint | None, plan: Sequence[PointOfInterest]) -> list[Segment]:
    """Edges start -> plan[0] -> plan[1] -> ... (the start leg is omitted when start is None)."""
    stops: list[LatLon] = []
    if start is not None:
        stops.append(LatLon(lat=start.lat, lon=start.lon))
    stops.extend(LatLon(lat=p.lat, lon=p.lon) for p in plan)
    return [Segment(from_=a, to=b) for a, b in zip(stops, stops[1:])]
