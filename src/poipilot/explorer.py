"""
POI search flow.

`PoiExplorer.search_around` is what the "search here" action runs:

    geosearch -> normalize -> dedup -> new route epoch -> export ordered coordinates

A new search always replaces the previous list wholesale. A failed search (or
zero results) leaves an empty list; nothing is raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from poipilot.config.settings import Settings
from poipilot.core.cache import FileCache
from poipilot.core.env import resolve_project_path
from poipilot.core.geo import GeoPoint, as_geo_point
from poipilot.domain.models import PoiCoordinatesPayload, PointOfInterest
from poipilot.host import MessageChannel
from poipilot.ingestion.wikipedia_client import WikipediaClient
from poipilot.routing.export import build_poi_coordinates_payload, send_payload
from poipilot.routing.normalize import dedup_nearby, normalize_pois
from poipilot.routing.tracker import RouteSession

logger = logging.getLogger(__name__)


def build_cache(settings: Settings) -> FileCache:
    return FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


@dataclass(frozen=True)
class CandidateStats:
    raw: int = 0
    invalid: int = 0
    duplicates: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"raw": self.raw, "invalid": self.invalid, "duplicates": self.duplicates}


def prepare_candidates(
    raw: Iterable[Any],
    *,
    dedup_km: float | None,
) -> tuple[list[PointOfInterest], CandidateStats]:
    """Normalize freshly fetched records and drop near-duplicates (None disables dedup)."""
    rows = list(raw or [])
    normalized = normalize_pois(rows)
    kept = dedup_nearby(normalized, dedup_km) if dedup_km is not None else normalized
    stats = CandidateStats(
        raw=len(rows),
        invalid=len(rows) - len(normalized),
        duplicates=len(normalized) - len(kept),
    )
    if stats.duplicates:
        logger.info("Dropped %d near-duplicate POI(s) within %.3f km", stats.duplicates, dedup_km)
    return kept, stats


@dataclass(frozen=True)
class SearchResult:
    center: GeoPoint
    pois: list[PointOfInterest]
    plan: list[PointOfInterest]
    payload: PoiCoordinatesPayload
    exported: bool = False
    stats: CandidateStats = field(default_factory=CandidateStats)


class PoiExplorer:
    """Runs searches and hands the results to the route session and the native module."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: WikipediaClient,
        session: RouteSession,
        channel: MessageChannel,
    ):
        self._settings = settings
        self._client = client
        self._session = session
        self._channel = channel

    def search_around(
        self,
        position: Any,
        *,
        radius_m: int | None = None,
        limit: int | None = None,
    ) -> SearchResult | None:
        """Search near `position` and start a new route epoch from it; None if no position."""
        center = as_geo_point(position)
        if center is None:
            logger.warning("Search skipped: no valid aircraft position")
            return None

        raw = self._client.geosearch(center, radius_m=radius_m, limit=limit)
        pois, stats = prepare_candidates(raw, dedup_km=self._settings.search.dedup_km)
        plan = self._session.replace_pois(pois, center)

        payload = build_poi_coordinates_payload(pois, center)
        exported = False
        if pois:
            exported = send_payload(self._channel, payload, event_name=self._settings.host.outbound_event)
        else:
            logger.info("Search returned no usable POIs")

        return SearchResult(center=center, pois=pois, plan=plan, payload=payload, exported=exported, stats=stats)
