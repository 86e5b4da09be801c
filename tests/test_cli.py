import json

from poipilot.cli import main

POIS = [
    {"id": "A", "lat": 10.0, "lon": 10.0, "title": "Alpha"},
    {"id": "B", "lat": 10.0, "lon": 10.01, "title": "Bravo"},
]


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_plan_prints_nearest_first(tmp_path, capsys):
    pois = _write(tmp_path / "pois.json", {"pois": list(reversed(POIS))})

    code = main(["plan", "--start-lat", "10", "--start-lon", "9.99", "--pois", pois, "--json"])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert [p["id"] for p in out] == ["A", "B"]


def test_plan_rejects_invalid_start(tmp_path, capsys):
    pois = _write(tmp_path / "pois.json", POIS)
    code = main(["plan", "--start-lat", "95", "--start-lon", "0", "--pois", pois])
    assert code == 2
    assert "Invalid start coordinate" in capsys.readouterr().out


def test_fly_replays_track_and_reports_arrivals(tmp_path, capsys):
    pois = _write(tmp_path / "pois.json", POIS)
    track = _write(
        tmp_path / "track.json",
        {
            "fixes": [
                {"lat": 10.0, "lon": 9.99},
                {"lat": 10.0, "lon": 10.0},
                {"lat": 10.0, "lon": 10.005},
                {"lat": 10.0, "lon": 10.01},
            ]
        },
    )

    code = main(["fly", "--pois", pois, "--track", track])

    assert code == 0
    out = capsys.readouterr().out
    assert "Planned 2 stop(s), 2 leg(s), 2.19 km" in out
    assert "arrived Alpha (A)" in out
    assert "arrived Bravo (B)" in out
    assert out.index("arrived Alpha") < out.index("arrived Bravo")
    assert "Visited 2 / 2; pauses requested: 2" in out


def test_fly_with_tight_threshold_reports_unreached(tmp_path, capsys):
    pois = _write(tmp_path / "pois.json", POIS)
    track = _write(tmp_path / "track.json", [{"lat": 10.0, "lon": 9.99}, {"lat": 10.0, "lon": 10.0}])

    code = main(["fly", "--pois", pois, "--track", track, "--threshold-km", "0.05", "--no-pause"])

    assert code == 0
    out = capsys.readouterr().out
    assert "Visited 1 / 2; pauses requested: 0" in out
    assert "Not reached: Bravo" in out


def test_fly_rejects_bad_track(tmp_path, capsys):
    pois = _write(tmp_path / "pois.json", POIS)
    track = _write(tmp_path / "track.json", {"nope": 1})
    assert main(["fly", "--pois", pois, "--track", track]) == 2
