"""
POI Pilot CLI entrypoint.

For local demos and debugging without the simulator:
- `search`: geosearch around a coordinate and print the visiting order.
- `plan`: order POIs from a JSON file.
- `fly`: replay a recorded track against a POI file and report arrivals.
- `summary`: print the encyclopedia summary for a title.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from poipilot.config.overrides import apply_settings_overrides
from poipilot.config.settings import get_settings
from poipilot.core.geo import GeoPoint, distance_km, is_valid_point
from poipilot.core.logging import configure_logging
from poipilot.core.scheduler import ManualClock, Scheduler
from poipilot.explorer import PoiExplorer, build_cache, prepare_candidates
from poipilot.host import RecordingChannel, RecordingHost, ReplayPositionSource, load_track
from poipilot.ingestion.wikipedia_client import WikipediaClient
from poipilot.routing.planner import plan_route
from poipilot.routing.tracker import ArrivalEvent, RouteSession
from poipilot.tracking import FlightTracker


def _load_pois_file(path: str) -> list[Any]:
    """Read raw POI records: a JSON list, or an object with a `pois` list."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("pois")
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of POI records")
    return data


def _parse_start(lat: float, lon: float) -> GeoPoint:
    if not is_valid_point(lat, lon) or not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise ValueError(f"Invalid start coordinate ({lat}, {lon})")
    return GeoPoint(lat=lat, lon=lon)


def _print_plan(start: GeoPoint, plan: list[Any]) -> None:
    cursor = start
    total = 0.0
    for i, poi in enumerate(plan, start=1):
        leg = distance_km(cursor, poi.point)
        total += leg
        print(f"{i:>3}. {poi.title}  ({poi.lat:.5f}, {poi.lon:.5f})  leg={leg:.2f} km")
        cursor = poi.point
    print(f"Total: {len(plan)} stop(s), {total:.2f} km")


def _cmd_search(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        center = _parse_start(args.lat, args.lon)
    except ValueError as e:
        print(f"error: {e}")
        return 2
    client = WikipediaClient(settings, build_cache(settings))
    explorer = PoiExplorer(
        settings,
        client=client,
        session=RouteSession(settings.routing.arrival_threshold_km),
        channel=RecordingChannel(ready=False),
    )
    result = explorer.search_around(center, radius_m=args.radius_m, limit=args.limit)
    if result is None:
        return 1

    if args.json:
        out = {
            "center": {"lat": result.center.lat, "lon": result.center.lon},
            "plan": [p.model_dump(mode="json") for p in result.plan],
            "payload": result.payload.model_dump(mode="json"),
            "candidates": result.stats.as_dict(),
        }
        print(json.dumps(out, ensure_ascii=False, indent=2))
        return 0

    s = result.stats
    print(f"Found {len(result.pois)} POI(s) (raw={s.raw} invalid={s.invalid} duplicates={s.duplicates})")
    _print_plan(result.center, result.plan)
    return 0


def _cmd_plan(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        raw = _load_pois_file(args.pois)
        start = _parse_start(args.start_lat, args.start_lon)
    except (OSError, ValueError) as e:
        print(f"error: {e}")
        return 2

    pois, _ = prepare_candidates(raw, dedup_km=None if args.no_dedup else settings.search.dedup_km)
    plan = plan_route(start, pois)
    if args.json:
        print(json.dumps([p.model_dump(mode="json") for p in plan], ensure_ascii=False, indent=2))
        return 0
    _print_plan(start, plan)
    return 0


def _cmd_fly(args: argparse.Namespace) -> int:
    settings = get_settings()
    overrides: dict[str, Any] = {"host": {"auto_pause": not args.no_pause}}
    if args.threshold_km is not None:
        overrides["routing"] = {"arrival_threshold_km": float(args.threshold_km)}
    try:
        settings = apply_settings_overrides(settings, overrides)
        raw = _load_pois_file(args.pois)
        fixes = load_track(args.track)
    except (OSError, ValueError) as e:
        print(f"error: {e}")
        return 2

    clock = ManualClock()
    scheduler = Scheduler(clock=clock)
    positions = ReplayPositionSource(fixes)
    host = RecordingHost(flags={settings.host.start_flight_flag: True})
    channel = RecordingChannel()

    def on_arrive(event: ArrivalEvent) -> None:
        print(
            f"t={clock():>6.1f}s  arrived {event.poi.title} ({event.poi.id})"
            f"  d={event.distance_km * 1000:.0f} m  remaining={event.remaining}"
        )

    tracker = FlightTracker(
        settings,
        session=RouteSession(settings.routing.arrival_threshold_km),
        positions=positions,
        channel=channel,
        host=host,
        scheduler=scheduler,
        on_arrive=on_arrive,
    )
    pois, _ = prepare_candidates(raw, dedup_km=settings.search.dedup_km)
    first_fix = next((f for f in fixes if is_valid_point(f.get("lat"), f.get("lon"))), None)
    plan = tracker.replace_pois(pois, start=first_fix)
    legs = tracker.session.planned_segments()
    route_km = sum(distance_km(GeoPoint(s.from_.lat, s.from_.lon), GeoPoint(s.to.lat, s.to.lon)) for s in legs)
    print(f"Planned {len(plan)} stop(s), {len(legs)} leg(s), {route_km:.2f} km; replaying {len(fixes)} fix(es)")

    tracker.start()
    scheduler.run(stop_when=lambda: positions.exhausted, sleep=clock.advance)
    tracker.stop()
    scheduler.close()

    snap = tracker.session.snapshot()
    print(f"Visited {len(snap.visited)} / {len(plan)}; pauses requested: {host.pause_requests}")
    if snap.remaining:
        print("Not reached: " + ", ".join(p.title for p in snap.plan))
    return 0


def _cmd_summary(args: argparse.Namespace) -> int:
    settings = get_settings()
    client = WikipediaClient(settings, build_cache(settings))
    summary = client.summary(args.title)
    if summary is None:
        print(f"No summary for {args.title!r}")
        return 1
    if args.json:
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return 0
    print(summary.get("title") or args.title)
    if summary.get("description"):
        print(f"  {summary['description']}")
    print()
    print(summary.get("extract") or "(no extract)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the POI Pilot CLI."""
    parser = argparse.ArgumentParser(prog="poipilot")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    s = sub.add_parser("search", help="Find POIs around a coordinate and print the visiting order.")
    s.add_argument("--lat", required=True, type=float)
    s.add_argument("--lon", required=True, type=float)
    s.add_argument("--radius-m", type=int, default=None, help="Search radius in meters (10..10000)")
    s.add_argument("--limit", type=int, default=None, help="Max results (1..500)")
    s.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    s.set_defaults(func=_cmd_search)

    p = sub.add_parser("plan", help="Order POIs from a JSON file nearest-first.")
    p.add_argument("--start-lat", required=True, type=float)
    p.add_argument("--start-lon", required=True, type=float)
    p.add_argument("--pois", required=True, help="JSON file: list of POI records")
    p.add_argument("--no-dedup", action="store_true", help="Keep near-duplicate POIs")
    p.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    p.set_defaults(func=_cmd_plan)

    f = sub.add_parser("fly", help="Replay a recorded track against a POI list and report arrivals.")
    f.add_argument("--pois", required=True, help="JSON file: list of POI records")
    f.add_argument("--track", required=True, help="JSON file: list of {lat, lon, heading?} fixes")
    f.add_argument("--threshold-km", type=float, default=None)
    f.add_argument("--no-pause", action="store_true", help="Do not request a pause on arrival")
    f.set_defaults(func=_cmd_fly)

    m = sub.add_parser("summary", help="Print the encyclopedia summary for a page title.")
    m.add_argument("title")
    m.add_argument("--json", action="store_true")
    m.set_defaults(func=_cmd_summary)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m poipilot.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
