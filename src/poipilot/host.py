"""
Simulator host bindings.

The routing core never touches the simulator directly. It receives three
capability objects:

- `PositionSource`: polled aircraft position/heading (may be absent).
- `MessageChannel`: named-event messaging to the native module (best-effort).
- `HostActions`: fire-and-forget host side effects (pause, boolean flags).

In-process implementations below back the CLI replay mode and the tests.
"""

from __future__ import annotations

import json
import logging
import time
from collections import deque
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from poipilot.core.geo import GeoPoint, as_geo_point, is_valid_point

logger = logging.getLogger(__name__)

MAX_LOG_LINES = 300


@runtime_checkable
class PositionSource(Protocol):
    def get_position(self) -> GeoPoint | None: ...

    def get_heading(self) -> float | None: ...


@runtime_checkable
class MessageChannel(Protocol):
    @property
    def is_ready(self) -> bool: ...

    def send(self, event_name: str, payload: Any) -> bool: ...


@runtime_checkable
class HostActions(Protocol):
    def pause(self) -> None: ...

    def set_flag(self, name: str, value: bool) -> None: ...

    def is_flag_set(self, name: str) -> bool: ...


def to_payload_string(payload: Any) -> str:
    """Serialize a payload for the wire: strings pass through, None becomes ""."""
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        logger.warning("Payload is not JSON-serializable; sending str() form")
        return str(payload)


def load_track(path: str | Path) -> list[dict[str, Any]]:
    """Load recorded fixes: a JSON list, or an object with a `fixes` list.

    Raises:
        ValueError: If the file does not contain a list of fixes.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("fixes")
    if not isinstance(data, list):
        raise ValueError(f"Track file {path} must contain a list of fixes")
    return [f for f in data if isinstance(f, dict)]


class ReplayPositionSource:
    """Replays recorded fixes, one per `get_position()` call; None once exhausted."""

    def __init__(self, fixes: Sequence[dict[str, Any]]):
        self._fixes = list(fixes)
        self._cursor = 0
        self._heading: float | None = None

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._fixes)

    def get_position(self) -> GeoPoint | None:
        if self.exhausted:
            return None
        fix = self._fixes[self._cursor]
        self._cursor += 1
        heading = fix.get("heading")
        self._heading = float(heading) if is_valid_point(heading, 0.0) else None
        return as_geo_point(fix)

    def get_heading(self) -> float | None:
        return self._heading


class RecordingChannel:
    """In-process message channel that keeps what was sent plus a rolling log."""

    def __init__(self, *, ready: bool = True, on_message: Callable[[str], None] | None = None):
        self._ready = ready
        self._on_message = on_message
        self.sent: list[tuple[str, str]] = []
        self.logs: deque[str] = deque(maxlen=MAX_LOG_LINES)
        self.last_message: str | None = None

    @property
    def is_ready(self) -> bool:
        return self._ready

    def _log(self, msg: str) -> None:
        self.logs.append(f"[{time.strftime('%H:%M:%S')}] {msg}")

    def connect(self) -> None:
        self._ready = True
        self._log("channel registered")

    def close(self) -> None:
        self._ready = False
        self._log("channel closed")

    def send(self, event_name: str, payload: Any) -> bool:
        if not self._ready:
            self._log("channel not ready; cannot send")
            return False
        text = to_payload_string(payload)
        self.sent.append((event_name, text))
        self._log(f"out [{event_name}]: {text}")
        return True

    def receive(self, text: str) -> None:
        """Deliver an inbound message (acknowledgements from the native module)."""
        self.last_message = text
        self._log(f"in: {text}")
        if self._on_message is not None:
            self._on_message(text)

    def messages(self, event_name: str | None = None) -> list[Any]:
        """Decoded payloads sent so far (optionally for one event name)."""
        out: list[Any] = []
        for name, text in self.sent:
            if event_name is not None and name != event_name:
                continue
            try:
                out.append(json.loads(text))
            except ValueError:
                out.append(text)
        return out


class RecordingHost:
    """In-process host: remembers flag writes and pause requests."""

    def __init__(self, flags: dict[str, bool] | None = None):
        self.flags: dict[str, bool] = dict(flags or {})
        self.flag_writes: list[tuple[str, bool]] = []
        self.pause_requests = 0

    def pause(self) -> None:
        self.pause_requests += 1

    def set_flag(self, name: str, value: bool) -> None:
        self.flags[name] = bool(value)
        self.flag_writes.append((name, bool(value)))

    def is_flag_set(self, name: str) -> bool:
        return bool(self.flags.get(name, False))
