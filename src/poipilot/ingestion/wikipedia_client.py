"""
Encyclopedia search provider (Wikipedia).

Two calls:
- `geosearch`: MediaWiki `list=geosearch` around a coordinate; the raw rows
  (`pageid`, `title`, `lat`, `lon`, `dist`) go to the normalizer untouched.
- `summary`: REST page summary for the POI popup, cached on disk.

Both degrade instead of raising: a failed search is "no results", a failed
summary is `None`. There are no retries; the user searches again.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from poipilot.config.settings import Settings
from poipilot.core.cache import FileCache
from poipilot.core.geo import as_geo_point
from poipilot.core.http import get_json

logger = logging.getLogger(__name__)

# Limits enforced by the geosearch API itself.
MIN_RADIUS_M = 10
MAX_RADIUS_M = 10_000
MAX_LIMIT = 500


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


class WikipediaClient:
    """Fetches nearby pages and page summaries for the configured language."""

    def __init__(self, settings: Settings, cache: FileCache):
        self._settings = settings
        self._cache = cache

    @property
    def language(self) -> str:
        return self._settings.search.language

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return get_json(
            url,
            params=params,
            timeout_seconds=self._settings.app.http_timeout_seconds,
            user_agent=self._settings.app.user_agent,
        )

    def geosearch(self, center: Any, *, radius_m: int | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        """Return raw geosearch rows near `center`, or [] on any failure."""
        point = as_geo_point(center)
        if point is None:
            logger.warning("Geosearch skipped: invalid center %r", center)
            return []

        search = self._settings.search
        radius = _clamp(int(radius_m if radius_m is not None else search.radius_m), MIN_RADIUS_M, MAX_RADIUS_M)
        count = _clamp(int(limit if limit is not None else search.limit), 1, MAX_LIMIT)
        params = {
            "action": "query",
            "list": "geosearch",
            "gscoord": f"{point.lat}|{point.lon}",
            "gsradius": radius,
            "gslimit": count,
            "format": "json",
        }

        logger.info("Geosearch lat=%.4f lon=%.4f radius=%dm limit=%d", point.lat, point.lon, radius, count)
        try:
            payload = self._get(search.api_url.format(lang=self.language), params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Geosearch failed: %s", exc)
            return []

        if not isinstance(payload, dict):
            return []
        if "error" in payload:
            logger.warning("Geosearch API error: %s", payload.get("error"))
            return []
        rows = (payload.get("query") or {}).get("geosearch")
        if not isinstance(rows, list):
            return []
        return [r for r in rows if isinstance(r, dict)]

    def summary(self, title: str) -> dict[str, Any] | None:
        """Return the page summary for `title` (cached, stale-if-error), or None."""
        if not title or not str(title).strip():
            return None
        title = str(title).strip()
        url = self._settings.search.summary_url.format(lang=self.language, title=quote(title, safe=""))

        def builder() -> Any:
            logger.info("Fetching summary for %r", title)
            return self._get(url)

        try:
            value = self._cache.get_or_set(
                "summary",
                f"{self.language}:{title}",
                builder,
                ttl_seconds=self._settings.search.summary_cache_ttl_seconds,
                stale_if_error=True,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Summary for %r unavailable: %s", title, exc)
            return None
        return value if isinstance(value, dict) else None
