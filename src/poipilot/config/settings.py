# src/poipilot/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/poipilot/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `POIPILOT_CONFIG_PATH`
- a small whitelist of environment variables (see `_apply_env_overrides`)

Design rule:
- Tuning knobs (arrival threshold, dedup distance, search radius) live in YAML,
  not hard-coded in the routing code.
"""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from poipilot.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `poipilot.config`."""
    text = resources.files("poipilot.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "POI Pilot"
    http_timeout_seconds: float = 15
    user_agent: str = "poipilot/0.1.0 (+https://local)"
    log_level: str = "INFO"


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/poipilot"
    default_ttl_seconds: int = 60 * 60 * 24


class SearchSettings(BaseModel):
    """Encyclopedia geosearch provider knobs."""

    language: str = "en"
    api_url: str = "https://{lang}.wikipedia.org/w/api.php"
    summary_url: str = "https://{lang}.wikipedia.org/api/rest_v1/page/summary/{title}"
    radius_m: int = Field(10_000, ge=10, le=10_000)
    limit: int = Field(50, ge=1, le=500)
    dedup_km: float = Field(0.1, ge=0)
    summary_cache_ttl_seconds: int = 60 * 60 * 24 * 7


class RoutingSettings(BaseModel):
    arrival_threshold_km: float = Field(0.2, gt=0, le=5)
    poll_interval_seconds: float = Field(1.0, gt=0)


class HostSettings(BaseModel):
    """Names used on the simulator side of the bridge."""

    outbound_event: str = "OnMessageFromJs"
    start_flight_flag: str = "L:WFP_StartFlight"
    next_poi_flag: str = "L:WFP_NextPoi"
    pulse_seconds: float = Field(1.0, ge=0)
    auto_pause: bool = True
    require_start_flight: bool = True


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    host: HostSettings = Field(default_factory=HostSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto the raw settings payload."""
    load_dotenv_if_present()
    data = dict(data)

    cache_dir = os.getenv("POIPILOT_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("POIPILOT_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    lang = os.getenv("POIPILOT_WIKIPEDIA_LANG")
    if lang:
        data.setdefault("search", {})["language"] = lang

    threshold = os.getenv("POIPILOT_ARRIVAL_THRESHOLD_KM")
    if threshold:
        data.setdefault("routing", {})["arrival_threshold_km"] = float(threshold)

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("POIPILOT_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def _logging_config() -> dict[str, Any]:
    return _read_package_yaml("logging.yaml")


def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (a fresh copy; callers mutate it before dictConfig)."""
    return copy.deepcopy(_logging_config())
