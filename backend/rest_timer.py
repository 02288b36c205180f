"""Countdown shown between sets.

At most one rest timer exists per session.  It is started when a set
becomes complete and remembers which set triggered it by id only.  Natural
expiry and :meth:`RestTimer.skip` both record the rest actually taken for
that set; superseding the timer (a new start, a focus request, a new set)
records nothing.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable

from backend import DEFAULT_REST_DURATION, TICK_INTERVAL, TOAST_DURATION


class RestState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


def format_rest_time(seconds: int) -> str:
    """Return ``seconds`` as ``MM:SS``."""

    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class RestTimer:
    """State machine for the rest countdown.

    ``clock`` must provide ``schedule_interval`` and ``schedule_once`` like
    :data:`kivy.clock.Clock`.  Without one, :meth:`tick` and
    :meth:`hide_toast` have to be called by the owner.

    ``on_complete`` receives ``(exercise_id, set_id)`` after the rest has
    been recorded.
    """

    def __init__(
        self,
        clock=None,
        default_duration: int = DEFAULT_REST_DURATION,
        toast_duration: float = TOAST_DURATION,
        on_complete: Callable[[str, str], None] | None = None,
    ) -> None:
        self.clock = clock
        self.default_duration = default_duration
        self.toast_duration = toast_duration
        self.on_complete = on_complete

        self.state = RestState.IDLE
        self.exercise_id: str | None = None
        self.set_id: str | None = None
        self.remaining = 0
        self.total = 0
        # seconds actually counted down, excluding paused time
        self.elapsed = 0
        # set id -> rest seconds taken; entries are never removed
        self.completed_rests: dict[str, int] = {}
        self.toast_visible = False
        self._event = None
        self._toast_event = None

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self.state in (RestState.RUNNING, RestState.PAUSED)

    @property
    def paused(self) -> bool:
        return self.state is RestState.PAUSED

    @property
    def progress(self) -> float:
        """Fraction of the rest still remaining, for progress bars."""

        if not self.active or self.total <= 0:
            return 0.0
        return self.remaining / self.total

    @property
    def formatted_remaining(self) -> str:
        return format_rest_time(self.remaining)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, exercise_id: str, set_id: str, duration: int | None = None) -> None:
        """Begin resting after ``set_id``, replacing any running timer."""

        self.stop()
        if duration is None:
            duration = self.default_duration
        duration = max(0, int(duration))
        self.exercise_id = exercise_id
        self.set_id = set_id
        self.remaining = duration
        self.total = duration
        self.elapsed = 0
        self.state = RestState.RUNNING
        if duration == 0:
            self._complete()
            return
        if self.clock is not None:
            self._event = self.clock.schedule_interval(self.tick, TICK_INTERVAL)

    def tick(self, *_args) -> None:
        if self.state is not RestState.RUNNING:
            return
        if self.remaining > 0:
            self.remaining -= 1
            self.elapsed += 1
        if self.remaining <= 0:
            self._complete()

    def pause(self) -> None:
        if self.state is RestState.RUNNING:
            self.state = RestState.PAUSED

    def resume(self) -> None:
        if self.state is RestState.PAUSED:
            self.state = RestState.RUNNING

    def toggle_pause(self) -> None:
        if self.state is RestState.RUNNING:
            self.pause()
        else:
            self.resume()

    def skip(self) -> None:
        """Finish resting now, recording only the time actually rested."""

        if self.active:
            self._complete()

    def adjust(self, seconds: int) -> None:
        """Add (or with a negative value remove) rest time.

        Removing time clamps at zero and completes the rest.  Adding past
        the starting duration grows the total so progress stays within
        ``[0, 1]``.
        """

        if not self.active:
            return
        self.remaining = max(0, self.remaining + int(seconds))
        self.total = max(self.total, self.elapsed + self.remaining)
        if self.remaining == 0:
            self._complete()

    def stop(self) -> None:
        """Discard the timer without recording a rest duration."""

        self._cancel_event()
        self.state = RestState.IDLE
        self.exercise_id = None
        self.set_id = None
        self.elapsed = 0
        self.total = 0
        self.remaining = 0

    def cancel_for_set(self, set_id: str) -> None:
        """Stop the timer if it was started by ``set_id``."""

        if self.active and self.set_id == set_id:
            self.stop()

    def hide_toast(self, *_args) -> None:
        self.toast_visible = False
        if self._toast_event is not None:
            self._toast_event.cancel()
            self._toast_event = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel_event(self) -> None:
        if self._event is not None:
            self._event.cancel()
            self._event = None

    def _complete(self) -> None:
        self._cancel_event()
        exercise_id, set_id = self.exercise_id, self.set_id
        self.state = RestState.COMPLETED
        taken = min(self.elapsed, self.total)
        self.completed_rests.setdefault(set_id, taken)
        logging.info("Rest finished after %s seconds", taken)
        self._show_toast()
        if self.on_complete:
            self.on_complete(exercise_id, set_id)
        if self.state is RestState.COMPLETED:
            self.stop()

    def _show_toast(self) -> None:
        self.hide_toast()
        self.toast_visible = True
        if self.clock is not None:
            self._toast_event = self.clock.schedule_once(
                self.hide_toast, self.toast_duration
            )
