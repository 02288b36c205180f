"""Value types shared by the active workout components.

Set fields are kept as free text exactly as the user typed them.  Parsing
only happens when a numeric value is required (increment/decrement and the
payload built when a workout is finished).
"""

from __future__ import annotations

import enum
import math
import uuid
from dataclasses import dataclass, field


class FieldKind(str, enum.Enum):
    """Editable fields of a set row."""

    WEIGHT = "weight"
    REPS = "reps"


def new_id() -> str:
    """Return a fresh identifier for sets, workouts and link rows."""

    return str(uuid.uuid4())


def is_blank(text: str | None) -> bool:
    return not (text or "").strip()


def parse_weight(text: str | None) -> float | None:
    """Return ``text`` as a finite float or ``None`` if it is not one."""

    try:
        value = float((text or "").strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_reps(text: str | None) -> int | None:
    """Return ``text`` as a whole number or ``None`` if it is not one."""

    try:
        return int((text or "").strip())
    except ValueError:
        return None


def format_weight(value: float) -> str:
    return f"{value:.1f}"


@dataclass(frozen=True)
class Exercise:
    id: str
    name: str


@dataclass(frozen=True)
class PreviousPerformance:
    """Most recent recorded weight/reps for an exercise."""

    weight: float
    reps: int

    @property
    def weight_text(self) -> str:
        return format_weight(self.weight)

    @property
    def reps_text(self) -> str:
        return str(self.reps)


@dataclass
class WorkoutSet:
    """One row of work for one exercise in the active session."""

    id: str = field(default_factory=new_id)
    weight: str = ""
    reps: str = ""
    completed: bool = False

    def value(self, kind: FieldKind) -> str:
        return self.weight if kind is FieldKind.WEIGHT else self.reps

    def set_value(self, kind: FieldKind, text: str) -> None:
        if kind is FieldKind.WEIGHT:
            self.weight = text
        else:
            self.reps = text

    @property
    def is_empty(self) -> bool:
        """``True`` when neither field holds any text."""

        return is_blank(self.weight) and is_blank(self.reps)

    @property
    def is_filled(self) -> bool:
        """``True`` when both fields hold text."""

        return not is_blank(self.weight) and not is_blank(self.reps)


@dataclass
class ExerciseSelection:
    """An exercise included in the session and its ordered sets."""

    exercise: Exercise
    sets: list[WorkoutSet] = field(default_factory=list)
    previous: PreviousPerformance | None = None
    # Row id of the remote workout/exercise link, once registered
    workout_exercise_id: str | None = None

    @property
    def id(self) -> str:
        return self.exercise.id

    def index_of(self, set_id: str) -> int | None:
        for idx, workout_set in enumerate(self.sets):
            if workout_set.id == set_id:
                return idx
        return None

    def find_set(self, set_id: str) -> WorkoutSet | None:
        idx = self.index_of(set_id)
        return self.sets[idx] if idx is not None else None


@dataclass(frozen=True)
class FocusTarget:
    """The field currently bound to the numeric entry surface."""

    exercise_id: str
    set_id: str
    field: FieldKind


@dataclass(frozen=True)
class SetTemplate:
    """Target values for one set of a routine."""

    set_number: int | None = None
    weight: str = ""
    reps: str = ""
    rest: str = ""


@dataclass(frozen=True)
class RoutineExercise:
    """An exercise of a routine used to preload a session."""

    exercise: Exercise
    order_index: int | None = None
    set_templates: tuple[SetTemplate, ...] = ()


@dataclass
class RoutineDraft:
    """Prefilled data offered when saving a workout as a routine."""

    name: str
    exercises: list[tuple[Exercise, list[SetTemplate]]] = field(default_factory=list)


@dataclass(frozen=True)
class SetRow:
    """Display state of a single set row."""

    set_id: str
    number: int
    weight: str
    reps: str
    weight_placeholder: str
    reps_placeholder: str
    completed: bool
    rest_seconds: int | None = None


@dataclass(frozen=True)
class CompletedSetPayload:
    """A finished set as sent to the persistence service."""

    workout_exercise_id: str
    set_number: int
    weight: float
    reps: int
    rest_seconds: int | None = None
