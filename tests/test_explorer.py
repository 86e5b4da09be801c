from poipilot.config.settings import get_settings
from poipilot.core.geo import GeoPoint
from poipilot.explorer import PoiExplorer, prepare_candidates
from poipilot.host import RecordingChannel
from poipilot.routing.tracker import RouteSession


class StubWikipediaClient:
    def __init__(self, rows):
        self.rows = rows
        self.calls = []

    def geosearch(self, center, *, radius_m=None, limit=None):
        self.calls.append((center, radius_m, limit))
        return list(self.rows)


ROWS = [
    {"pageid": 1, "title": "Far Castle", "lat": 46.0, "lon": 8.05},
    {"pageid": 2, "title": "Near Church", "lat": 46.0, "lon": 8.01},
    {"pageid": 3, "title": "Church Annex", "lat": 46.0003, "lon": 8.01},  # ~33 m from pageid 2
    {"pageid": 4, "title": "Broken", "lat": "n/a", "lon": 8.0},
]


def _explorer(rows, channel=None):
    settings = get_settings()
    session = RouteSession(settings.routing.arrival_threshold_km)
    channel = channel or RecordingChannel()
    client = StubWikipediaClient(rows)
    return PoiExplorer(settings, client=client, session=session, channel=channel), session, channel, client


def test_search_normalizes_dedups_plans_and_exports():
    settings = get_settings()
    explorer, session, channel, client = _explorer(ROWS)

    result = explorer.search_around(GeoPoint(46.0, 8.0), radius_m=5000)

    assert client.calls[0][1] == 5000
    assert [p.id for p in result.pois] == ["1", "2"]
    assert [p.id for p in result.plan] == ["2", "1"]
    assert result.stats.as_dict() == {"raw": 4, "invalid": 1, "duplicates": 1}
    assert result.exported is True

    (message,) = channel.messages(settings.host.outbound_event)
    assert message == {
        "type": "POI_COORDINATES",
        "data": [{"lat": 46.0, "lon": 8.01}, {"lat": 46.0, "lon": 8.05}],
        "count": 2,
    }
    assert [p.id for p in session.plan] == ["2", "1"]


def test_empty_search_clears_previous_list_and_sends_nothing():
    explorer, session, channel, client = _explorer(ROWS)
    explorer.search_around(GeoPoint(46.0, 8.0))
    sent_before = len(channel.sent)

    client.rows = []
    result = explorer.search_around(GeoPoint(46.0, 8.0))

    assert result.pois == [] and result.plan == []
    assert result.exported is False
    assert session.snapshot().remaining == ()
    assert len(channel.sent) == sent_before


def test_search_without_position_is_a_no_op():
    explorer, session, _, client = _explorer(ROWS)
    assert explorer.search_around(None) is None
    assert client.calls == []
    assert session.epoch == 0


def test_search_with_channel_not_ready_still_plans():
    explorer, session, _, _ = _explorer(ROWS, channel=RecordingChannel(ready=False))
    result = explorer.search_around({"lat": 46.0, "lon": 8.0})
    assert result.exported is False
    assert len(session.plan) == 2


def test_prepare_candidates_without_dedup():
    pois, stats = prepare_candidates(ROWS, dedup_km=None)
    assert [p.id for p in pois] == ["1", "2", "3"]
    assert stats.duplicates == 0
