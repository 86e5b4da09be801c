import json

from poipilot.core.geo import GeoPoint
from poipilot.domain.models import PointOfInterest
from poipilot.host import RecordingChannel, to_payload_string
from poipilot.routing.export import build_poi_coordinates_payload, send_ordered_pois


POIS = [
    PointOfInterest(id="far", lat=0, lon=5, title="Far"),
    PointOfInterest(id="near", lat=0, lon=1, title="Near"),
]


def test_payload_is_ordered_nearest_first_and_counted():
    payload = build_poi_coordinates_payload(POIS, GeoPoint(0, 0))
    assert payload.model_dump(mode="json") == {
        "type": "POI_COORDINATES",
        "data": [{"lat": 0.0, "lon": 1.0}, {"lat": 0.0, "lon": 5.0}],
        "count": 2,
    }


def test_payload_keeps_input_order_without_start_and_skips_bad_rows():
    raw = [{"lat": 0, "lon": 5}, {"lat": "0", "lon": 1}, {"lat": 0, "lon": 1}]
    payload = build_poi_coordinates_payload(raw, None)
    assert [(d.lat, d.lon) for d in payload.data] == [(0, 5), (0, 1)]
    assert payload.count == 2


def test_send_ordered_pois_over_ready_channel():
    channel = RecordingChannel()
    assert send_ordered_pois(channel, POIS, {"lat": 0, "lon": 0}, event_name="OnMessageFromJs")

    (event, text), = channel.sent
    assert event == "OnMessageFromJs"
    assert json.loads(text)["data"][0] == {"lat": 0.0, "lon": 1.0}


def test_send_ordered_pois_returns_false_when_channel_not_ready(caplog):
    channel = RecordingChannel(ready=False)
    assert send_ordered_pois(channel, POIS, GeoPoint(0, 0)) is False
    assert channel.sent == []
    assert caplog.text.count("Message channel not ready") == 1


def test_send_ordered_pois_swallows_channel_errors():
    class BrokenChannel:
        is_ready = True

        def send(self, event_name, payload):
            raise ConnectionError("bridge gone")

    assert send_ordered_pois(BrokenChannel(), POIS, GeoPoint(0, 0)) is False


def test_to_payload_string():
    assert to_payload_string(None) == ""
    assert to_payload_string("raw") == "raw"
    assert json.loads(to_payload_string({"a": 1})) == {"a": 1}
    assert to_payload_string({1, 2}).startswith("{")
