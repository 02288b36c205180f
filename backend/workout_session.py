"""Controller for the workout currently being performed."""

from __future__ import annotations

import datetime
import logging
import time
from typing import Callable, Iterable

from backend import (
    DEFAULT_INCREMENT_STEP,
    DEFAULT_REST_DURATION,
    TOAST_DURATION,
)
from backend.elapsed import ElapsedTimeTracker
from backend.input_surface import InputSurfaceArbiter, NoSurface
from backend.models import (
    CompletedSetPayload,
    Exercise,
    ExerciseSelection,
    FieldKind,
    RoutineDraft,
    RoutineExercise,
    SetRow,
    SetTemplate,
    WorkoutSet,
    parse_reps,
    parse_weight,
)
from backend.persistence import AuthenticationError, PersistenceError, WorkoutStore
from backend.rest_timer import RestTimer
from backend.set_tracker import SetCompletionModel


class ActiveWorkoutSession:
    """In-memory state of the workout currently being performed.

    The session owns four cooperating parts:

    * ``elapsed`` -- stopwatch since the workout started
    * ``sets`` -- exercises, their sets and per-set completion
    * ``rest_timer`` -- countdown started whenever a set becomes complete
    * ``surface`` -- which input surface is visible and which field the
      keypad edits

    All of them run on the UI thread.  The persistence calls are coroutines
    awaited on the same event loop, so the timers keep ticking while a save
    is in flight.
    """

    def __init__(
        self,
        store: WorkoutStore,
        workout_id: str,
        name: str,
        start_time: float,
        *,
        clock=None,
        now: Callable[[], float] | None = None,
        rest_duration: int = DEFAULT_REST_DURATION,
        toast_duration: float = TOAST_DURATION,
        increment_step: float = DEFAULT_INCREMENT_STEP,
        from_routine: bool = False,
    ):
        self.store = store
        self.workout_id = workout_id
        self.name = name
        self.start_time = start_time
        self.from_routine = from_routine
        self._now = now or time.time

        self.sets = SetCompletionModel(
            on_set_completed=self._on_set_completed,
            on_set_uncompleted=self._on_set_uncompleted,
        )
        self.rest_timer = RestTimer(
            clock,
            default_duration=rest_duration,
            toast_duration=toast_duration,
            on_complete=self._on_rest_complete,
        )
        self.surface = InputSurfaceArbiter(self.sets, self.rest_timer, increment_step)
        self.elapsed = ElapsedTimeTracker(start_time, clock, now=self._now)

        self.end_time: float | None = None
        self.finish_error: str | None = None
        self.is_finishing = False
        self.finished = False
        self.cancelled = False
        # shown once after finishing an ad-hoc workout
        self.show_save_as_routine_prompt = False
        self._sets_saved = False

    # ------------------------------------------------------------------
    # View lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Start (or resume) the stopwatch when the session is shown."""

        if not (self.finished or self.cancelled):
            self.elapsed.start()

    def close(self) -> None:
        """Stop the stopwatch when the session view goes away."""

        self.elapsed.stop()

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    @property
    def elapsed_text(self) -> str:
        return self.elapsed.formatted

    @property
    def exercises(self) -> list[ExerciseSelection]:
        return self.sets.exercises

    @property
    def toast_visible(self) -> bool:
        return self.rest_timer.toast_visible

    @property
    def scroll_target(self) -> str | None:
        return self.sets.scroll_target

    def set_rows(self, exercise_id: str) -> list[SetRow]:
        """Return display rows for every set of ``exercise_id``."""

        selection = self.sets.get(exercise_id)
        if selection is None:
            return []
        previous = selection.previous
        rows = []
        for number, workout_set in enumerate(selection.sets, 1):
            rows.append(
                SetRow(
                    set_id=workout_set.id,
                    number=number,
                    weight=workout_set.weight,
                    reps=workout_set.reps,
                    weight_placeholder=previous.weight_text if previous else "",
                    reps_placeholder=previous.reps_text if previous else "",
                    completed=workout_set.completed,
                    rest_seconds=self.rest_timer.completed_rests.get(workout_set.id),
                )
            )
        return rows

    def rest_shown_after(self, exercise_id: str, set_id: str) -> bool:
        """``True`` if the rest bar belongs below the given set."""

        return (
            self.rest_timer.active
            and self.rest_timer.exercise_id == exercise_id
            and self.rest_timer.set_id == set_id
        )

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def add_set(self, exercise_id: str) -> WorkoutSet | None:
        workout_set = self.sets.add_set(exercise_id)
        if workout_set is not None:
            # the user is about to work, so resting is over
            self.rest_timer.stop()
        return workout_set

    def update_field(self, exercise_id: str, set_id: str, field: FieldKind, value: str) -> None:
        self.sets.update_field(exercise_id, set_id, field, value)

    def toggle_completion(self, exercise_id: str, set_id: str) -> None:
        self.sets.toggle_completion(exercise_id, set_id)

    def fill_from_previous(self, exercise_id: str, set_id: str) -> None:
        self.sets.fill_from_previous(exercise_id, set_id)

    def request_focus(self, exercise_id: str, set_id: str, field: FieldKind) -> None:
        self.surface.request_focus(exercise_id, set_id, field)

    def rename(self, name: str) -> None:
        name = (name or "").strip()
        if name:
            self.name = name

    # ------------------------------------------------------------------
    # Reactions between the parts
    # ------------------------------------------------------------------

    def _on_set_completed(self, exercise_id: str, set_id: str) -> None:
        self.rest_timer.start(exercise_id, set_id)
        if isinstance(self.surface.surface, NoSurface):
            self.surface.switch_to_rest_surface()

    def _on_set_uncompleted(self, exercise_id: str, set_id: str) -> None:
        self.rest_timer.cancel_for_set(set_id)

    def _on_rest_complete(self, exercise_id: str, set_id: str) -> None:
        self.surface.advance_focus_after_rest(exercise_id, set_id)

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------

    async def add_exercises(self, exercises: Iterable[Exercise]) -> None:
        """Append exercises not yet in the session, one blank set each."""

        first_new_set = None
        for exercise in exercises:
            selection = self.sets.add_exercise(exercise)
            if selection is None:
                continue
            if first_new_set is None:
                first_new_set = selection.sets[0].id
            await self._register_exercise(selection)
        if first_new_set is not None:
            self.sets.request_scroll(first_new_set)

    async def preload_routine(self, items: Iterable[RoutineExercise]) -> None:
        """Fill the session from routine templates.

        Target values become the set text; every set starts incomplete.
        """

        first_set = None
        for item in sorted(items, key=lambda i: i.order_index or 0):
            templates = sorted(item.set_templates, key=lambda t: t.set_number or 0)
            sets = [WorkoutSet(weight=t.weight or "", reps=t.reps or "") for t in templates]
            selection = self.sets.add_exercise(item.exercise, sets)
            if selection is None:
                continue
            if first_set is None:
                first_set = selection.sets[0].id
            await self._register_exercise(selection)
        if first_set is not None:
            self.sets.request_scroll(first_set)

    async def _register_exercise(self, selection: ExerciseSelection) -> None:
        order_index = self.sets.order_index(selection.id) or 0
        try:
            selection.workout_exercise_id = await self.store.add_exercise_to_workout(
                self.workout_id, selection.id, order_index
            )
        except PersistenceError:
            logging.exception("Could not add %s to workout %s", selection.exercise.name, self.workout_id)
        try:
            previous = await self.store.fetch_previous_performance(selection.id)
        except PersistenceError:
            logging.exception("Could not fetch previous performance for %s", selection.exercise.name)
            previous = None
        self.sets.set_previous(selection.id, previous)

    # ------------------------------------------------------------------
    # Finishing
    # ------------------------------------------------------------------

    def build_payload(self) -> list[CompletedSetPayload]:
        """Return the completed sets that are worth persisting.

        Sets without a positive weight and a positive whole number of reps
        are left out, as are exercises that never got registered remotely.
        """

        payload = []
        rests = self.rest_timer.completed_rests
        for selection in self.sets.exercises:
            if selection.workout_exercise_id is None:
                continue
            for number, workout_set in enumerate(selection.sets, 1):
                if not workout_set.completed:
                    continue
                weight = parse_weight(workout_set.weight)
                reps = parse_reps(workout_set.reps)
                if weight is None or weight <= 0 or reps is None or reps <= 0:
                    continue
                payload.append(
                    CompletedSetPayload(
                        workout_exercise_id=selection.workout_exercise_id,
                        set_number=number,
                        weight=weight,
                        reps=reps,
                        rest_seconds=rests.get(workout_set.id),
                    )
                )
        return payload

    async def finish(self) -> bool:
        """Persist the workout.

        Returns ``True`` on success.  On failure ``finish_error`` holds a
        message for the user and the local state is left as it was so the
        user can try again.
        """

        if self.is_finishing or self.finished or self.cancelled:
            return False
        self.is_finishing = True
        self.finish_error = None
        end_time = self._now()
        try:
            if not self._sets_saved:
                payload = self.build_payload()
                if payload:
                    await self.store.insert_completed_sets(payload)
                self._sets_saved = True
            await self.store.finalize_workout(self.workout_id, self.name, end_time)
        except AuthenticationError:
            logging.exception("Cannot finish workout %s", self.workout_id)
            self.finish_error = "Could not save workout. User not found."
            return False
        except PersistenceError as exc:
            logging.exception("Failed to finish workout %s", self.workout_id)
            self.finish_error = f"Failed to save workout: {exc}"
            return False
        finally:
            self.is_finishing = False

        self.finished = True
        self.end_time = end_time
        self.elapsed.stop()
        self.rest_timer.stop()
        self.surface.clear()
        self.show_save_as_routine_prompt = (
            not self.from_routine and self.sets.has_completed_sets()
        )
        logging.info("Finished workout %s", self.workout_id)
        return True

    def dismiss_save_as_routine_prompt(self) -> None:
        self.show_save_as_routine_prompt = False

    def build_routine_draft(self, today: datetime.date | None = None) -> RoutineDraft:
        """Turn the completed sets into a routine template draft."""

        today = today or datetime.date.today()
        draft = RoutineDraft(name=f"My Workout {today:%b} {today.day}")
        rests = self.rest_timer.completed_rests
        for selection in self.sets.exercises:
            templates = []
            for number, workout_set in enumerate(selection.sets, 1):
                if not workout_set.completed:
                    continue
                rest = rests.get(workout_set.id)
                templates.append(
                    SetTemplate(
                        set_number=number,
                        weight=workout_set.weight,
                        reps=workout_set.reps,
                        rest=str(rest) if rest is not None else "",
                    )
                )
            if templates:
                draft.exercises.append((selection.exercise, templates))
        return draft

    # ------------------------------------------------------------------
    # Cancelling
    # ------------------------------------------------------------------

    @property
    def can_cancel(self) -> bool:
        """``False`` once a save has been issued or the session has ended."""

        return not (self.is_finishing or self.finished or self.cancelled)

    async def cancel(self) -> bool:
        """Throw the workout away locally and try to delete it remotely.

        Returns ``False`` without doing anything while a save is in flight.
        """

        if not self.can_cancel:
            return False
        self.cancelled = True
        self.elapsed.stop()
        self.rest_timer.stop()
        self.surface.clear()
        try:
            await self.store.delete_workout(self.workout_id)
        except Exception:
            logging.exception("Failed to delete workout %s on cancel", self.workout_id)
        return True
