"""Per-set completion state for the active workout.

Exercises are kept in session order and each owns the ordered list of its
sets.  Both levels are addressed by stable ids so a rest timer or focus
target only ever stores identifiers, never references into the lists.

Completion of a set is derived from its fields: a set is complete when both
weight and reps hold text.  The only exceptions are :meth:`toggle_completion`
and :meth:`fill_from_previous`, which fill both fields themselves before
marking the set complete.  Unknown ids are ignored everywhere.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from backend.models import (
    Exercise,
    ExerciseSelection,
    FieldKind,
    PreviousPerformance,
    WorkoutSet,
)

SetCallback = Callable[[str, str], None]


class SetCompletionModel:
    """Source of truth for the exercises and sets of one session."""

    def __init__(
        self,
        on_set_completed: SetCallback | None = None,
        on_set_uncompleted: SetCallback | None = None,
        on_scroll: Callable[[str], None] | None = None,
    ) -> None:
        self.on_set_completed = on_set_completed
        self.on_set_uncompleted = on_set_uncompleted
        self.on_scroll = on_scroll
        # last "scroll to this set" hint for the presentation layer
        self.scroll_target: str | None = None
        self._order: list[str] = []
        self._exercises: dict[str, ExerciseSelection] = {}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def exercises(self) -> list[ExerciseSelection]:
        return [self._exercises[ex_id] for ex_id in self._order]

    def __contains__(self, exercise_id: str) -> bool:
        return exercise_id in self._exercises

    def __len__(self) -> int:
        return len(self._order)

    def get(self, exercise_id: str) -> ExerciseSelection | None:
        return self._exercises.get(exercise_id)

    def find(self, exercise_id: str, set_id: str) -> WorkoutSet | None:
        selection = self._exercises.get(exercise_id)
        if selection is None:
            return None
        return selection.find_set(set_id)

    def order_index(self, exercise_id: str) -> int | None:
        try:
            return self._order.index(exercise_id)
        except ValueError:
            return None

    def iter_sets(self) -> Iterator[tuple[ExerciseSelection, WorkoutSet]]:
        for selection in self.exercises:
            for workout_set in selection.sets:
                yield selection, workout_set

    def has_completed_sets(self) -> bool:
        return any(s.completed for _sel, s in self.iter_sets())

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_exercise(
        self,
        exercise: Exercise,
        sets: Iterable[WorkoutSet] | None = None,
        previous: PreviousPerformance | None = None,
    ) -> ExerciseSelection | None:
        """Append ``exercise`` with ``sets`` (one blank set by default).

        Returns ``None`` if the exercise is already part of the session.
        """

        if exercise.id in self._exercises:
            return None
        set_list = list(sets) if sets is not None else []
        if not set_list:
            set_list = [WorkoutSet()]
        selection = ExerciseSelection(exercise, set_list, previous)
        self._exercises[exercise.id] = selection
        self._order.append(exercise.id)
        return selection

    def set_previous(
        self, exercise_id: str, previous: PreviousPerformance | None
    ) -> None:
        selection = self._exercises.get(exercise_id)
        if selection is not None:
            selection.previous = previous

    def add_set(self, exercise_id: str) -> WorkoutSet | None:
        """Append a blank set to ``exercise_id`` and ask to scroll to it."""

        selection = self._exercises.get(exercise_id)
        if selection is None:
            return None
        workout_set = WorkoutSet()
        selection.sets.append(workout_set)
        self.request_scroll(workout_set.id)
        return workout_set

    def request_scroll(self, set_id: str) -> None:
        self.scroll_target = set_id
        if self.on_scroll:
            self.on_scroll(set_id)

    def next_set_after(self, exercise_id: str, set_id: str) -> tuple[str, str] | None:
        """Return ids of the set following ``set_id``.

        The next set of the same exercise wins; otherwise the first set of
        the next exercise in session order.  ``None`` if there is neither.
        """

        ex_idx = self.order_index(exercise_id)
        if ex_idx is None:
            return None
        selection = self._exercises[exercise_id]
        set_idx = selection.index_of(set_id)
        if set_idx is None:
            return None
        if set_idx + 1 < len(selection.sets):
            return exercise_id, selection.sets[set_idx + 1].id
        if ex_idx + 1 < len(self._order):
            next_selection = self._exercises[self._order[ex_idx + 1]]
            if next_selection.sets:
                return next_selection.id, next_selection.sets[0].id
        return None

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def update_field(
        self, exercise_id: str, set_id: str, field: FieldKind, value: str
    ) -> bool:
        """Store ``value`` and recompute completion.

        Returns ``True`` when the edit turned an incomplete set complete, in
        which case the completion callback has already run.
        """

        workout_set = self.find(exercise_id, set_id)
        if workout_set is None:
            return False
        was_complete = workout_set.completed
        workout_set.set_value(FieldKind(field), value)
        workout_set.completed = workout_set.is_filled
        if not was_complete and workout_set.completed:
            self._emit_completed(exercise_id, set_id)
            return True
        return False

    def toggle_completion(self, exercise_id: str, set_id: str) -> None:
        """Flip the completion checkmark of a set.

        An empty incomplete set is filled from previous performance; without
        previous performance there is nothing to complete and the call is a
        no-op.
        """

        selection = self._exercises.get(exercise_id)
        workout_set = selection.find_set(set_id) if selection else None
        if workout_set is None:
            return
        if workout_set.completed:
            workout_set.completed = False
            if self.on_set_uncompleted:
                self.on_set_uncompleted(exercise_id, set_id)
            return
        if workout_set.is_empty:
            if selection.previous is None:
                return
            self._fill(workout_set, selection.previous)
        workout_set.completed = True
        self._emit_completed(exercise_id, set_id)

    def fill_from_previous(self, exercise_id: str, set_id: str) -> None:
        """Overwrite a set with previous performance and complete it.

        The completion callback runs even if the set was already complete.
        """

        selection = self._exercises.get(exercise_id)
        workout_set = selection.find_set(set_id) if selection else None
        if workout_set is None or selection.previous is None:
            return
        self._fill(workout_set, selection.previous)
        workout_set.completed = True
        self._emit_completed(exercise_id, set_id)

    @staticmethod
    def _fill(workout_set: WorkoutSet, previous: PreviousPerformance) -> None:
        workout_set.weight = previous.weight_text
        workout_set.reps = previous.reps_text

    def _emit_completed(self, exercise_id: str, set_id: str) -> None:
        if self.on_set_completed:
            self.on_set_completed(exercise_id, set_id)
