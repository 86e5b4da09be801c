"""
Ordered-coordinates export for the simulator's native module.

When a search completes, the fetched POIs are ordered nearest-first from the
search position and pushed over the message channel as bare lat/lon pairs:

    {"type": "POI_COORDINATES", "data": [{"lat": .., "lon": ..}, ...], "count": N}

This is a one-shot hand-off; it never touches the arrival tracker's plan.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from poipilot.core.geo import as_geo_point, is_valid_point
from poipilot.domain.models import LatLon, PoiCoordinatesPayload, PointOfInterest
from poipilot.host import MessageChannel
from poipilot.routing.normalize import normalize_poi
from poipilot.routing.planner import plan_route

logger = logging.getLogger(__name__)

DEFAULT_EVENT_NAME = "OnMessageFromJs"


def _exportable(pois: Iterable[Any]) -> list[PointOfInterest]:
    out: list[PointOfInterest] = []
    for p in pois or []:
        if isinstance(p, PointOfInterest):
            out.append(p)
        elif isinstance(p, Mapping) and is_valid_point(p.get("lat"), p.get("lon")):
            poi = normalize_poi(p)
            if poi is not None:
                out.append(poi)
    return out


def build_poi_coordinates_payload(pois: Iterable[Any], start: Any = None) -> PoiCoordinatesPayload:
    """Order `pois` nearest-first from `start` and reduce them to lat/lon pairs.

    Without a usable start the input order is kept.
    """
    valid = _exportable(pois)
    origin = as_geo_point(start)
    ordered = plan_route(origin, valid) if origin is not None else valid
    data = [LatLon(lat=p.lat, lon=p.lon) for p in ordered]
    return PoiCoordinatesPayload(data=data, count=len(data))


def send_payload(
    channel: MessageChannel,
    payload: PoiCoordinatesPayload,
    *,
    event_name: str = DEFAULT_EVENT_NAME,
) -> bool:
    """Send an already-built payload; False (logged) when the channel is unavailable."""
    if not channel.is_ready:
        logger.warning("Message channel not ready; ordered POIs not sent")
        return False
    try:
        sent = channel.send(event_name, payload.model_dump(mode="json"))
    except Exception:
        logger.exception("Failed to send ordered POI coordinates")
        return False
    if sent:
        logger.info("Sent %d ordered POI coordinate(s) on %s", payload.count, event_name)
    return bool(sent)


def send_ordered_pois(
    channel: MessageChannel,
    pois: Iterable[Any],
    start: Any = None,
    *,
    event_name: str = DEFAULT_EVENT_NAME,
) -> bool:
    """Order `pois` from `start` and push them over `channel`."""
    return send_payload(channel, build_poi_coordinates_payload(pois, start), event_name=event_name)
