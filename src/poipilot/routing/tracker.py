"""
Arrival detection and the remaining/visited state that goes with it.

`check_arrival` is the pure polling check. `RouteSession` owns the mutable
state (remaining POIs, current plan, visited ids, completed legs) and is the
only thing allowed to change it, through two transitions:

- `replace_pois`: a new search result arrived -> new epoch, visited cleared.
- `tick`: one position poll -> plan from it if POIs arrived before any fix;
  on arrival, drop the target and replan from the live position.

Arrival side effects (simulator flags, pause, messaging) are not triggered
here; callers act on the returned `ArrivalEvent` (see `poipilot.tracking`).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from poipilot.core.geo import GeoPoint, as_geo_point, distance_km
from poipilot.domain.models import LatLon, PointOfInterest, Segment
from poipilot.routing.normalize import normalize_pois
from poipilot.routing.planner import plan_route, route_segments

logger = logging.getLogger(__name__)

DEFAULT_ARRIVAL_THRESHOLD_KM = 0.2
MAX_ARRIVAL_THRESHOLD_KM = 5.0


@dataclass(frozen=True)
class ArrivalCheck:
    arrived_id: str | None
    distance_km: float | None = None


@dataclass(frozen=True)
class ArrivalEvent:
    """A POI credited as visited; emitted at most once per id per epoch."""

    poi: PointOfInterest
    position: GeoPoint
    distance_km: float
    segment: Segment
    remaining: int


@dataclass(frozen=True)
class RouteSnapshot:
    epoch: int
    start: GeoPoint | None
    remaining: tuple[PointOfInterest, ...]
    plan: tuple[PointOfInterest, ...]
    visited: frozenset[str]
    completed_segments: tuple[Segment, ...]

    @property
    def target(self) -> PointOfInterest | None:
        return self.plan[0] if self.plan else None


def check_arrival(
    live_position: GeoPoint,
    plan: Sequence[PointOfInterest],
    visited: set[str],
    threshold_km: float,
) -> ArrivalCheck:
    """Credit `plan[0]` as reached when within `threshold_km` and not yet visited.

    On arrival the target id is added to `visited`, so repeated polls while the
    aircraft lingers inside the threshold report it only once.
    """
    if not plan:
        return ArrivalCheck(arrived_id=None)

    target = plan[0]
    d = distance_km(live_position, target.point)
    if d <= threshold_km and target.id not in visited:
        visited.add(target.id)
        return ArrivalCheck(arrived_id=target.id, distance_km=d)
    return ArrivalCheck(arrived_id=None, distance_km=d)


class RouteSession:
    """Single owner of the planner + tracker state for one panel."""

    def __init__(self, threshold_km: float = DEFAULT_ARRIVAL_THRESHOLD_KM):
        if not 0 < threshold_km <= MAX_ARRIVAL_THRESHOLD_KM:
            raise ValueError(f"threshold_km must be in (0, {MAX_ARRIVAL_THRESHOLD_KM:g}]")
        self._threshold_km = float(threshold_km)
        self._epoch = 0
        self._start: GeoPoint | None = None
        self._remaining: list[PointOfInterest] = []
        self._plan: list[PointOfInterest] = []
        self._visited: set[str] = set()
        self._completed: list[Segment] = []

    @property
    def threshold_km(self) -> float:
        return self._threshold_km

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def plan(self) -> tuple[PointOfInterest, ...]:
        return tuple(self._plan)

    @property
    def target(self) -> PointOfInterest | None:
        return self._plan[0] if self._plan else None

    def replace_pois(self, pois: Iterable[Any], start: Any = None) -> list[PointOfInterest]:
        """Start a new epoch with `pois` (raw records or normalized POIs).

        The visited set and completed legs are cleared. When `start` is not a
        usable fix the plan stays empty until the next `tick` (or `replan`)
        supplies one.
        """
        self._epoch += 1
        self._remaining = normalize_pois(list(pois or []))
        self._visited.clear()
        self._completed.clear()
        self._start = None
        self._plan = []
        logger.info("Epoch %d: %d POI(s) loaded", self._epoch, len(self._remaining))
        return self.replan(start)

    def replan(self, start: Any) -> list[PointOfInterest]:
        """Recompute the stop order from a new external fix."""
        point = as_geo_point(start)
        if point is None:
            logger.info("No valid start position; route left empty")
            self._plan = []
            return []
        self._start = point
        self._plan = plan_route(point, self._remaining)
        return list(self._plan)

    def ensure_planned(self, position: Any) -> bool:
        """Plan from `position` if POIs were loaded before any usable fix; True if it planned."""
        if self._start is not None or not self._remaining:
            return False
        if as_geo_point(position) is None:
            return False
        self.replan(position)
        logger.info("Epoch %d: planned %d stop(s) from first fix", self._epoch, len(self._plan))
        return True

    def tick(self, position: Any) -> ArrivalEvent | None:
        """Run one arrival check against the live position; None when nothing happened."""
        live = as_geo_point(position)
        if live is None:
            logger.debug("Skipping tick: no position")
            return None
        self.ensure_planned(live)

        target = self.target
        check = check_arrival(live, self._plan, self._visited, self._threshold_km)
        if check.arrived_id is None or target is None:
            return None

        segment = Segment(
            from_=LatLon(lat=live.lat, lon=live.lon),
            to=LatLon(lat=target.lat, lon=target.lon),
        )
        self._completed.append(segment)
        self._remaining = [p for p in self._remaining if p.id != target.id]
        self.replan(live)
        logger.info(
            "Arrived at %s (%s) d=%.3f km; %d remaining",
            target.title,
            target.id,
            check.distance_km,
            len(self._remaining),
        )
        return ArrivalEvent(
            poi=target,
            position=live,
            distance_km=float(check.distance_km or 0.0),
            segment=segment,
            remaining=len(self._remaining),
        )

    def current_segment(self, position: Any) -> Segment | None:
        """The live leg from the aircraft to the current target (redrawn every tick)."""
        live = as_geo_point(position)
        target = self.target
        if live is None or target is None:
            return None
        return Segment(from_=LatLon(lat=live.lat, lon=live.lon), to=LatLon(lat=target.lat, lon=target.lon))

    def planned_segments(self) -> list[Segment]:
        return route_segments(self._start, self._plan)

    def snapshot(self) -> RouteSnapshot:
        return RouteSnapshot(
            epoch=self._epoch,
            start=self._start,
            remaining=tuple(self._remaining),
            plan=tuple(self._plan),
            visited=frozenset(self._visited),
            completed_segments=tuple(self._completed),
        )
