"""
Raw search records -> `PointOfInterest`.

Search providers hand back loosely-shaped dicts (geosearch rows carry `pageid`,
other sources use `id` or `name`, some send coordinates as strings). The
normalizer turns them into one uniform shape and drops anything it cannot place
on a map. It never reorders and never talks to the network.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from poipilot.core.geo import distance_km
from poipilot.domain.models import PointOfInterest

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown POI"
DEFAULT_DEDUP_KM = 0.1


def _coerce_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            out = float(text)
        except ValueError:
            return None
    else:
        return None
    return out if math.isfinite(out) else None


def _fmt_coord(value: float) -> str:
    # 12.0 -> "12" so synthesized ids read like the source numbers.
    return str(int(value)) if value.is_integer() else repr(value)


def _first_present(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def normalize_poi(record: Any) -> PointOfInterest | None:
    """Normalize one raw record, or return None when it has no usable coordinates."""
    if isinstance(record, PointOfInterest):
        return record
    if not isinstance(record, Mapping):
        return None

    lat = _coerce_float(record.get("lat"))
    lon = _coerce_float(record.get("lon"))
    if lat is None or lon is None:
        return None

    raw_id = _first_present(record, "id", "pageid")
    poi_id = str(raw_id) if raw_id is not None else f"{_fmt_coord(lat)}-{_fmt_coord(lon)}"
    title = _first_present(record, "title", "name")

    return PointOfInterest(
        id=poi_id,
        lat=lat,
        lon=lon,
        title=str(title) if title is not None else UNKNOWN_TITLE,
    )


def normalize_pois(raw: Any) -> list[PointOfInterest]:
    """Normalize a sequence of raw records, preserving input order.

    Records without finite lat/lon are dropped silently. Anything that is not a
    sequence of records yields an empty list.
    """
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, (Sequence, Iterable)):
        return []

    out: list[PointOfInterest] = []
    dropped = 0
    for record in raw:
        poi = normalize_poi(record)
        if poi is None:
            dropped += 1
            continue
        out.append(poi)
    if dropped:
        logger.debug("Dropped %d record(s) without usable coordinates", dropped)
    return out


def dedup_nearby(
    candidates: Iterable[PointOfInterest],
    min_separation_km: float = DEFAULT_DEDUP_KM,
) -> list[PointOfInterest]:
    """Keep a candidate only if it is farther than `min_separation_km` from every kept one.

    Candidates are visited in arrival order, so the first of a near-coincident
    pair wins. Every retained pair is strictly more than the separation apart.
    """
    kept: list[PointOfInterest] = []
    for cand in candidates:
        p = cand.point
        if all(distance_km(p, k.point) > min_separation_km for k in kept):
            kept.append(cand)
    return kept
