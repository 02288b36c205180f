"""Arbitration between the two bottom input surfaces.

Only one surface is ever visible: nothing, the numeric keypad bound to a
single set field, or the rest-timer controls.  The current surface is a
single value of the :data:`Surface` union so two surfaces can never be
shown together.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from backend import DEFAULT_INCREMENT_STEP
from backend.models import (
    FieldKind,
    FocusTarget,
    format_weight,
    parse_weight,
)
from backend.rest_timer import RestTimer
from backend.set_tracker import SetCompletionModel


@dataclass(frozen=True)
class NoSurface:
    pass


@dataclass(frozen=True)
class NumericSurface:
    target: FocusTarget


@dataclass(frozen=True)
class RestControlsSurface:
    pass


Surface = Union[NoSurface, NumericSurface, RestControlsSurface]

NO_SURFACE = NoSurface()
REST_CONTROLS = RestControlsSurface()

DIGITS = "0123456789"


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class InputSurfaceArbiter:
    """Decide which input surface is visible and edit the focused field."""

    def __init__(
        self,
        sets: SetCompletionModel,
        rest_timer: RestTimer,
        increment_step: float = DEFAULT_INCREMENT_STEP,
    ) -> None:
        self.sets = sets
        self.rest_timer = rest_timer
        self.increment_step = increment_step
        self._surface: Surface = NO_SURFACE
        # keypad target to return to from the rest controls
        self._last_target: FocusTarget | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def surface(self) -> Surface:
        # rest controls disappear on their own once the timer is gone
        if isinstance(self._surface, RestControlsSurface) and not self.rest_timer.active:
            return NO_SURFACE
        return self._surface

    @property
    def focus(self) -> FocusTarget | None:
        surface = self.surface
        if isinstance(surface, NumericSurface):
            return surface.target
        return None

    @property
    def numeric_visible(self) -> bool:
        return isinstance(self.surface, NumericSurface)

    @property
    def rest_controls_visible(self) -> bool:
        return isinstance(self.surface, RestControlsSurface)

    def focused_text(self) -> str:
        target = self.focus
        if target is None:
            return ""
        workout_set = self.sets.find(target.exercise_id, target.set_id)
        return workout_set.value(target.field) if workout_set else ""

    # ------------------------------------------------------------------
    # Focus changes
    # ------------------------------------------------------------------

    def request_focus(self, exercise_id: str, set_id: str, field: FieldKind) -> None:
        """Bind the keypad to a field, superseding any rest timer."""

        if self.sets.find(exercise_id, set_id) is None:
            return
        self._surface = NumericSurface(FocusTarget(exercise_id, set_id, FieldKind(field)))
        self.sets.request_scroll(set_id)
        self.rest_timer.stop()

    def next_field(self) -> None:
        """Move from weight to reps of the same set, or close the keypad."""

        target = self.focus
        if target is None:
            return
        if target.field is FieldKind.WEIGHT:
            self._surface = NumericSurface(
                FocusTarget(target.exercise_id, target.set_id, FieldKind.REPS)
            )
        else:
            self._surface = NO_SURFACE

    def advance_focus_after_rest(self, exercise_id: str, set_id: str) -> None:
        """Focus the weight field of the set after ``set_id``, if any."""

        following = self.sets.next_set_after(exercise_id, set_id)
        if following is None:
            self._surface = NO_SURFACE
            return
        self.request_focus(following[0], following[1], FieldKind.WEIGHT)

    def switch_to_rest_surface(self) -> None:
        """Show the rest controls in place of whatever surface is visible."""

        if not self.rest_timer.active:
            return
        if isinstance(self._surface, NumericSurface):
            self._last_target = self._surface.target
        self._surface = REST_CONTROLS

    @property
    def return_target(self) -> FocusTarget | None:
        """Field the keypad goes back to when leaving the rest controls.

        The field edited before the controls were shown, or else the weight
        of the set being rested after.
        """

        target = self._last_target
        if target is not None and self.sets.find(target.exercise_id, target.set_id):
            return target
        timer = self.rest_timer
        if timer.active and self.sets.find(timer.exercise_id, timer.set_id):
            return FocusTarget(timer.exercise_id, timer.set_id, FieldKind.WEIGHT)
        return None

    def switch_to_numeric_surface(self, target: FocusTarget | None = None) -> None:
        """Show the keypad for ``target`` while the rest timer keeps running.

        Unlike :meth:`request_focus` this does not supersede the timer.
        """

        target = target or self.return_target
        if target is None or self.sets.find(target.exercise_id, target.set_id) is None:
            return
        self._surface = NumericSurface(target)

    def clear(self) -> None:
        self._surface = NO_SURFACE
        self._last_target = None

    # ------------------------------------------------------------------
    # Editing the focused field
    # ------------------------------------------------------------------

    def increment(self, delta: float | None = None) -> None:
        self._shift(self.increment_step if delta is None else delta)

    def decrement(self, delta: float | None = None) -> None:
        self._shift(-(self.increment_step if delta is None else delta))

    def _shift(self, delta: float) -> None:
        target = self.focus
        if target is None:
            return
        current = parse_weight(self.focused_text()) or 0.0
        if target.field is FieldKind.REPS:
            value = _round_half_away(current) + _round_half_away(delta)
            text = str(max(0, value))
        else:
            text = format_weight(max(0.0, current + delta))
        self._write(target, text)

    def type_character(self, char: str) -> None:
        """Append a keypad character to the focused field.

        A decimal point is only accepted for weight and only once.
        """

        target = self.focus
        if target is None:
            return
        text = self.focused_text()
        if char == ".":
            if target.field is not FieldKind.WEIGHT or "." in text:
                return
        elif char not in DIGITS or len(char) != 1:
            return
        self._write(target, text + char)

    def backspace(self) -> None:
        target = self.focus
        if target is None:
            return
        text = self.focused_text()
        if text:
            self._write(target, text[:-1])

    def _write(self, target: FocusTarget, text: str) -> None:
        self.sets.update_field(target.exercise_id, target.set_id, target.field, text)
