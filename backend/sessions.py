"""Registry of the workout session currently in progress.

Only one session may be active at a time.  The app starts, finishes and
cancels sessions through :class:`SessionManager`; everything that happens
while a session is open goes through the
:class:`~backend.workout_session.ActiveWorkoutSession` it returns.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from backend import DEFAULT_INCREMENT_STEP, DEFAULT_REST_DURATION, TOAST_DURATION
from backend.models import RoutineExercise
from backend.persistence import WorkoutStore
from backend.workout_session import ActiveWorkoutSession


class SessionManager:
    def __init__(
        self,
        store: WorkoutStore,
        clock=None,
        now: Callable[[], float] | None = None,
        rest_duration: int = DEFAULT_REST_DURATION,
        toast_duration: float = TOAST_DURATION,
        increment_step: float = DEFAULT_INCREMENT_STEP,
    ) -> None:
        self.store = store
        self.clock = clock
        self._now = now or time.time
        self.rest_duration = rest_duration
        self.toast_duration = toast_duration
        self.increment_step = increment_step
        self.active: ActiveWorkoutSession | None = None
        self._starting = False

    @property
    def has_active_session(self) -> bool:
        return self.active is not None or self._starting

    async def start_session(
        self,
        name: str,
        routine: Iterable[RoutineExercise] | None = None,
    ) -> ActiveWorkoutSession | None:
        """Create a workout remotely and make it the active session.

        Returns ``None`` when a session is already active or starting.
        Errors from the store propagate and leave no session behind.
        """

        if self.has_active_session:
            logging.warning("Ignoring start of %r: a workout is already active", name)
            return None
        routine = list(routine or [])
        self._starting = True
        try:
            start_time = self._now()
            workout_id = await self.store.create_workout(name, start_time)
        finally:
            self._starting = False

        session = ActiveWorkoutSession(
            self.store,
            workout_id,
            name,
            start_time,
            clock=self.clock,
            now=self._now,
            rest_duration=self.rest_duration,
            toast_duration=self.toast_duration,
            increment_step=self.increment_step,
            from_routine=bool(routine),
        )
        self.active = session
        logging.info("Started workout %s (%s)", workout_id, name)
        session.open()
        if routine:
            await session.preload_routine(routine)
        return session

    async def finish_active(self) -> bool:
        """Finish the active session; it stays registered if saving fails."""

        session = self.active
        if session is None:
            return False
        if not await session.finish():
            return False
        session.close()
        if self.active is session:
            self.active = None
        return True

    async def cancel_active(self) -> bool:
        """Discard the active session unless a save for it is in flight."""

        session = self.active
        if session is None:
            return False
        if not session.can_cancel:
            logging.warning("Ignoring cancel of workout %s: save in progress", session.workout_id)
            return False
        self.active = None
        session.close()
        logging.info("Cancelled workout %s", session.workout_id)
        return await session.cancel()
