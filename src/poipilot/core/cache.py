from __future__ import annotations

import json
import logging
import time
from hashlib import sha256
from pathlib import Path
from typing import Any, Callable

"""
On-disk JSON cache for encyclopedia responses.

Page summaries change rarely, and the panel often reopens the same POI, so the
search client keeps them under `.cache/poipilot/` by default:
- keys are hashed (SHA-256) so titles with slashes or unicode are path-safe,
- TTL is enforced on read,
- an expired entry can still be served when the upstream call fails.

Geosearch results are never cached: a new search must reflect the new position.
"""

logger = logging.getLogger(__name__)


class FileCache:
    """A filesystem-backed cache keyed by (namespace, key)."""

    def __init__(self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400):
        self._base_dir = Path(base_dir)
        self._enabled = enabled
        self._default_ttl_seconds = default_ttl_seconds

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _key_path(self, namespace: str, key: str) -> Path:
        digest = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self._base_dir / namespace / f"{digest}.json"

    def _read(self, namespace: str, key: str) -> dict[str, Any] | None:
        path = self._key_path(namespace, key)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.debug("Unreadable cache entry %s", path)
            return None
        if not isinstance(raw, dict) or "value" not in raw:
            return None
        return raw

    def get(self, namespace: str, key: str, ttl_seconds: int | None = None) -> Any | None:
        """Return a cached value if present and not expired; otherwise None."""
        if not self._enabled:
            return None
        raw = self._read(namespace, key)
        if raw is None:
            return None
        try:
            created = int(raw["created_at_unix"])
            stored_ttl = int(raw["ttl_seconds"])
        except (KeyError, TypeError, ValueError):
            return None
        effective_ttl = ttl_seconds if ttl_seconds is not None else stored_ttl
        if int(time.time()) - created > effective_ttl:
            return None
        return raw["value"]

    def get_stale(self, namespace: str, key: str) -> Any | None:
        """Return a cached value regardless of age (stale-if-error fallback)."""
        if not self._enabled:
            return None
        raw = self._read(namespace, key)
        return None if raw is None else raw.get("value")

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Write a JSON-serializable value; temp file + replace keeps entries whole."""
        if not self._enabled:
            return None
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl_seconds
        path = self._key_path(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"created_at_unix": int(time.time()), "ttl_seconds": int(ttl), "value": value}
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def get_or_set(
        self,
        namespace: str,
        key: str,
        builder: Callable[[], Any],
        ttl_seconds: int | None = None,
        *,
        stale_if_error: bool = False,
    ) -> Any:
        """Return the cached value, or build and store it.

        With `stale_if_error`, a failing `builder()` falls back to an expired
        entry when one exists; otherwise the error propagates.
        """
        cached = self.get(namespace, key, ttl_seconds=ttl_seconds)
        if cached is not None:
            return cached
        try:
            value = builder()
        except Exception:
            if stale_if_error:
                stale = self.get_stale(namespace, key)
                if stale is not None:
                    logger.info("Serving stale %s entry after upstream error", namespace)
                    return stale
            raise
        if value is not None:
            self.set(namespace, key, value, ttl_seconds=ttl_seconds)
        return value
