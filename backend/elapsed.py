"""Stopwatch showing how long the active workout has been running."""

from __future__ import annotations

import time
from typing import Callable

from backend import TICK_INTERVAL


def format_duration(seconds: float) -> str:
    """Return ``seconds`` as ``HH:MM:SS``."""

    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class ElapsedTimeTracker:
    """Recompute the elapsed session time once per tick.

    ``clock`` must provide ``schedule_interval`` like
    :data:`kivy.clock.Clock`.  Without a clock the tracker only updates when
    :meth:`tick` is called.  The value never decreases, even if the wall
    clock is adjusted backwards while the session is open.
    """

    def __init__(
        self,
        start_time: float,
        clock=None,
        now: Callable[[], float] | None = None,
        on_tick: Callable[[str], None] | None = None,
    ) -> None:
        self.start_time = start_time
        self.clock = clock
        self._now = now or time.time
        self.on_tick = on_tick
        self.elapsed = 0.0
        self.formatted = format_duration(0)
        self._event = None

    @property
    def running(self) -> bool:
        return self._event is not None

    def start(self) -> None:
        """Start or resume ticking."""

        self.stop()
        self.tick()
        if self.clock is not None:
            self._event = self.clock.schedule_interval(self.tick, TICK_INTERVAL)

    def stop(self) -> None:
        """Stop ticking without forgetting the start time."""

        if self._event is not None:
            self._event.cancel()
            self._event = None

    def tick(self, *_args) -> str:
        value = self._now() - self.start_time
        if value > self.elapsed:
            self.elapsed = value
        self.formatted = format_duration(self.elapsed)
        if self.on_tick:
            self.on_tick(self.formatted)
        return self.formatted
