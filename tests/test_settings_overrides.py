from __future__ import annotations

import pytest

from poipilot.config.overrides import apply_settings_overrides
from poipilot.config.settings import get_settings


def test_defaults_load_from_packaged_yaml():
    settings = get_settings()
    assert settings.routing.arrival_threshold_km == pytest.approx(0.2)
    assert settings.routing.poll_interval_seconds == pytest.approx(1.0)
    assert settings.search.dedup_km == pytest.approx(0.1)
    assert settings.host.next_poi_flag == "L:WFP_NextPoi"


def test_apply_settings_overrides_returns_same_object_when_none():
    settings = get_settings()
    assert apply_settings_overrides(settings, None) is settings


def test_apply_settings_overrides_can_override_routing_knobs():
    settings = get_settings()

    out = apply_settings_overrides(settings, {"routing": {"arrival_threshold_km": 0.15}})

    assert out.routing.arrival_threshold_km == pytest.approx(0.15)
    assert settings.routing.arrival_threshold_km != pytest.approx(0.15)


def test_apply_settings_overrides_rejects_disallowed_keys_with_clear_path():
    with pytest.raises(ValueError, match=r"search\.api_url"):
        apply_settings_overrides(get_settings(), {"search": {"api_url": "http://evil.test"}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    with pytest.raises(ValueError, match=r"settings_overrides key 'search' must be a mapping"):
        apply_settings_overrides(get_settings(), {"search": 1})


def test_apply_settings_overrides_revalidates_ranges():
    with pytest.raises(ValueError):
        apply_settings_overrides(get_settings(), {"routing": {"arrival_threshold_km": 0}})
