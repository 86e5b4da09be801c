"""
Live flight tracking.

`FlightTracker` polls the position source on a fixed cadence (about 1 Hz), keeps
the live leg to the current target up to date, and feeds the arrival check
while a flight is active. On arrival it:

1. pulses the "next POI" flag (true, then false after `host.pulse_seconds`),
2. asks the host to pause (when `host.auto_pause`),
3. sends a `POI_ARRIVED` notification over the message channel,
4. calls the optional `on_arrive` hook.

Host and channel failures are logged and never stop the poller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from poipilot.config.settings import Settings
from poipilot.core.geo import GeoPoint
from poipilot.core.scheduler import ScheduledTask, Scheduler
from poipilot.domain.models import PointOfInterest, Segment
from poipilot.host import HostActions, MessageChannel, PositionSource
from poipilot.routing.tracker import ArrivalEvent, RouteSession

logger = logging.getLogger(__name__)


class FlightTracker:
    def __init__(
        self,
        settings: Settings,
        *,
        session: RouteSession,
        positions: PositionSource,
        channel: MessageChannel,
        host: HostActions,
        scheduler: Scheduler,
        on_arrive: Callable[[ArrivalEvent], Any] | None = None,
    ):
        self._settings = settings
        self._session = session
        self._positions = positions
        self._channel = channel
        self._host = host
        self._scheduler = scheduler
        self._on_arrive = on_arrive

        self._poll_task: ScheduledTask | None = None
        self._pending: list[ScheduledTask] = []
        self._last_position: GeoPoint | None = None
        self._heading: float | None = None
        self._current_segment: Segment | None = None
        self.arrivals: list[ArrivalEvent] = []

    @property
    def session(self) -> RouteSession:
        return self._session

    @property
    def running(self) -> bool:
        return self._poll_task is not None and self._poll_task.active

    @property
    def last_position(self) -> GeoPoint | None:
        return self._last_position

    @property
    def heading(self) -> float | None:
        return self._heading

    @property
    def current_segment(self) -> Segment | None:
        return self._current_segment

    def start(self) -> None:
        if self.running:
            return
        interval = self._settings.routing.poll_interval_seconds
        self._poll_task = self._scheduler.every(interval, self.poll_once, name="position-poll")
        logger.info("Flight tracking started (every %.2fs)", interval)

    def stop(self) -> None:
        """Stop polling and drop any pending flag reverts."""
        self._scheduler.cancel(self._poll_task)
        self._poll_task = None
        for task in self._pending:
            self._scheduler.cancel(task)
        self._pending.clear()
        self._current_segment = None
        logger.info("Flight tracking stopped")

    def replace_pois(self, pois: Iterable[Any], start: Any = None) -> list[PointOfInterest]:
        """New POI list; plans from `start`, or from the last known position."""
        return self._session.replace_pois(pois, start if start is not None else self._last_position)

    def _flight_active(self) -> bool:
        if not self._settings.host.require_start_flight:
            return True
        try:
            return self._host.is_flag_set(self._settings.host.start_flight_flag)
        except Exception:
            logger.warning("Could not read %s", self._settings.host.start_flight_flag, exc_info=True)
            return False

    def poll_once(self) -> ArrivalEvent | None:
        """One tick: refresh position, then run the arrival check if a flight is active."""
        position = self._positions.get_position()
        if position is None:
            logger.debug("No position this tick")
            return None
        self._last_position = position
        self._heading = self._positions.get_heading()
        self._session.ensure_planned(position)

        if not self._flight_active():
            self._current_segment = None
            return None

        self._current_segment = self._session.current_segment(position)
        event = self._session.tick(position)
        if event is not None:
            self._current_segment = None
            self._handle_arrival(event)
        return event

    def _handle_arrival(self, event: ArrivalEvent) -> None:
        self.arrivals.append(event)
        self._pulse(self._settings.host.next_poi_flag)

        if self._settings.host.auto_pause:
            try:
                self._host.pause()
            except Exception:
                logger.warning("Pause request failed", exc_info=True)

        self._notify(event)
        if self._on_arrive is not None:
            self._on_arrive(event)

    def _pulse(self, flag: str) -> None:
        try:
            self._host.set_flag(flag, True)
        except Exception:
            logger.warning("Could not set %s", flag, exc_info=True)
            return

        def revert() -> None:
            self._host.set_flag(flag, False)

        self._pending = [t for t in self._pending if t.active]
        task = self._scheduler.call_later(self._settings.host.pulse_seconds, revert, name=f"pulse:{flag}")
        self._pending.append(task)

    def _notify(self, event: ArrivalEvent) -> None:
        if not self._channel.is_ready:
            logger.warning("Message channel not ready; arrival at %s not announced", event.poi.id)
            return
        payload = {
            "type": "POI_ARRIVED",
            "id": event.poi.id,
            "title": event.poi.title,
            "lat": event.poi.lat,
            "lon": event.poi.lon,
            "remaining": event.remaining,
        }
        try:
            self._channel.send(self._settings.host.outbound_event, payload)
        except Exception:
            logger.warning("Arrival notification failed", exc_info=True)
