"""
Single-threaded cooperative scheduler.

Replaces ad-hoc interval timers: periodic pollers and one-shot delayed actions
are registered here and run to completion one at a time, so a poller never
overlaps itself. Callbacks should read current state from their owner each
time they run rather than capturing it at registration.

`close()` cancels everything; nothing fires after teardown.
"""

from __future__ import annotations

import itertools
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


class ManualClock:
    """A clock that only moves when told to (simulated time for replays and tests)."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds > 0:
            self._now += float(seconds)


@dataclass(eq=False)
class ScheduledTask:
    name: str
    callback: Callable[[], Any]
    due: float
    interval: float | None = None
    seq: int = 0
    runs: int = 0
    cancelled: bool = False
    done: bool = False
    errors: int = field(default=0)

    @property
    def periodic(self) -> bool:
        return self.interval is not None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.done)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._tasks: list[ScheduledTask] = []
        self._seq = itertools.count()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tasks(self) -> list[ScheduledTask]:
        return [t for t in self._tasks if t.active]

    def now(self) -> float:
        return self._clock()

    def _add(self, task: ScheduledTask) -> ScheduledTask:
        if self._closed:
            raise RuntimeError("scheduler is closed")
        self._tasks.append(task)
        return task

    def every(
        self,
        interval_s: float,
        callback: Callable[[], Any],
        *,
        name: str | None = None,
        immediate: bool = False,
    ) -> ScheduledTask:
        """Run `callback` every `interval_s` seconds (first run after one interval unless `immediate`)."""
        interval = float(interval_s)
        if not interval > 0:
            raise ValueError("interval_s must be > 0")
        due = self.now() if immediate else self.now() + interval
        seq = next(self._seq)
        return self._add(
            ScheduledTask(name=name or f"every-{seq}", callback=callback, due=due, interval=interval, seq=seq)
        )

    def call_later(self, delay_s: float, callback: Callable[[], Any], *, name: str | None = None) -> ScheduledTask:
        """Run `callback` once after `delay_s` seconds."""
        seq = next(self._seq)
        due = self.now() + max(0.0, float(delay_s))
        return self._add(ScheduledTask(name=name or f"later-{seq}", callback=callback, due=due, seq=seq))

    def cancel(self, task: ScheduledTask | None) -> None:
        if task is not None:
            task.cancel()

    def close(self) -> None:
        """Cancel every task; later registrations raise."""
        for t in self._tasks:
            t.cancel()
        self._tasks.clear()
        self._closed = True

    def next_due(self) -> float | None:
        active = self.tasks
        return min(t.due for t in active) if active else None

    def run_pending(self, now: float | None = None) -> int:
        """Run every task due at `now`, earliest first; returns how many ran."""
        if self._closed:
            return 0
        now = self.now() if now is None else float(now)
        due = sorted((t for t in self._tasks if t.active and t.due <= now), key=lambda t: (t.due, t.seq))

        ran = 0
        for task in due:
            # An earlier callback may have cancelled this one or closed the scheduler.
            if not task.active or self._closed:
                continue
            try:
                task.callback()
            except Exception:
                task.errors += 1
                logger.exception("Scheduled task %s failed", task.name)
            task.runs += 1
            ran += 1

            if task.interval is None:
                task.done = True
            else:
                # Missed intervals are skipped, not replayed.
                behind = math.floor((now - task.due) / task.interval) + 1
                task.due += task.interval * max(1, behind)

        self._tasks = [t for t in self._tasks if t.active]
        return ran

    def run(
        self,
        *,
        stop_after_s: float | None = None,
        stop_when: Callable[[], bool] | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        """Loop until closed, out of tasks, `stop_when()` is true, or the time budget is spent."""
        started = self.now()
        while not self._closed:
            if stop_when is not None and stop_when():
                return
            next_due = self.next_due()
            if next_due is None:
                return
            now = self.now()
            if stop_after_s is not None:
                deadline = started + float(stop_after_s)
                if next_due > deadline:
                    return
            if next_due > now:
                sleep(next_due - now)
            # Float drift after sleep must not leave the due task for another spin.
            self.run_pending(max(self.now(), next_due))
