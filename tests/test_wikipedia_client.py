import httpx

from poipilot.config.settings import get_settings
from poipilot.core.cache import FileCache
from poipilot.core.geo import GeoPoint
from poipilot.ingestion.wikipedia_client import WikipediaClient


GEOSEARCH_RESPONSE = {
    "batchcomplete": "",
    "query": {
        "geosearch": [
            {"pageid": 18618509, "ns": 0, "title": "Wikimedia Foundation", "lat": 37.78, "lon": -122.4, "dist": 26.2},
            {"pageid": 42936625, "ns": 0, "title": "Foxcroft Building", "lat": 37.7787, "lon": -122.3991, "dist": 81.6},
        ]
    },
}


def test_geosearch_builds_query_and_returns_rows(monkeypatch, tmp_path):
    calls = []

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15, user_agent=None):  # noqa: ARG001
        calls.append((url, params))
        return GEOSEARCH_RESPONSE

    monkeypatch.setattr("poipilot.ingestion.wikipedia_client.get_json", fake_get_json)
    client = WikipediaClient(get_settings(), FileCache(tmp_path, enabled=False))

    rows = client.geosearch(GeoPoint(37.7891838, -122.4033522), radius_m=50_000, limit=0)

    assert [r["pageid"] for r in rows] == [18618509, 42936625]
    url, params = calls[0]
    assert url == "https://en.wikipedia.org/w/api.php"
    assert params["list"] == "geosearch"
    assert params["gscoord"] == "37.7891838|-122.4033522"
    assert params["gsradius"] == 10_000
    assert params["gslimit"] == 1


def test_geosearch_failure_degrades_to_empty(monkeypatch, tmp_path):
    def fake_get_json(url, **_kwargs):
        request = httpx.Request("GET", url)
        response = httpx.Response(503, request=request)
        raise httpx.HTTPStatusError("503", request=request, response=response)

    monkeypatch.setattr("poipilot.ingestion.wikipedia_client.get_json", fake_get_json)
    client = WikipediaClient(get_settings(), FileCache(tmp_path, enabled=False))

    assert client.geosearch({"lat": 1.0, "lon": 2.0}) == []


def test_geosearch_api_error_and_bad_shapes_degrade_to_empty(monkeypatch, tmp_path):
    responses = iter([{"error": {"code": "badcoord"}}, ["unexpected"], {"query": {}}])
    monkeypatch.setattr("poipilot.ingestion.wikipedia_client.get_json", lambda *_a, **_k: next(responses))
    client = WikipediaClient(get_settings(), FileCache(tmp_path, enabled=False))

    assert client.geosearch(GeoPoint(0, 0)) == []
    assert client.geosearch(GeoPoint(0, 0)) == []
    assert client.geosearch(GeoPoint(0, 0)) == []


def test_geosearch_with_invalid_center_makes_no_call(monkeypatch, tmp_path):
    def fail(*_args, **_kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr("poipilot.ingestion.wikipedia_client.get_json", fail)
    client = WikipediaClient(get_settings(), FileCache(tmp_path, enabled=False))

    assert client.geosearch({"lat": float("nan"), "lon": 0}) == []
    assert client.geosearch(None) == []


def test_summary_is_cached_and_served_stale_on_error(monkeypatch, tmp_path):
    urls = []
    fail = {"on": False}

    def fake_get_json(url, **_kwargs):
        urls.append(url)
        if fail["on"]:
            raise httpx.ConnectError("offline")
        return {"title": "Eiffel Tower", "extract": "Wrought-iron lattice tower."}

    monkeypatch.setattr("poipilot.ingestion.wikipedia_client.get_json", fake_get_json)
    monkeypatch.setattr("poipilot.core.cache.time.time", lambda: 0)
    client = WikipediaClient(get_settings(), FileCache(tmp_path, enabled=True))

    first = client.summary("Eiffel Tower")
    again = client.summary("Eiffel Tower")
    assert first == again == {"title": "Eiffel Tower", "extract": "Wrought-iron lattice tower."}
    assert urls == ["https://en.wikipedia.org/api/rest_v1/page/summary/Eiffel%20Tower"]

    monkeypatch.setattr("poipilot.core.cache.time.time", lambda: 10**9)
    fail["on"] = True
    assert client.summary("Eiffel Tower")["title"] == "Eiffel Tower"
    assert len(urls) == 2


def test_summary_failure_without_cache_returns_none(monkeypatch, tmp_path):
    def fake_get_json(url, **_kwargs):
        raise httpx.ConnectError("offline")

    monkeypatch.setattr("poipilot.ingestion.wikipedia_client.get_json", fake_get_json)
    client = WikipediaClient(get_settings(), FileCache(tmp_path, enabled=True))

    assert client.summary("Nowhere") is None
    assert client.summary("   ") is None
