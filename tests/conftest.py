from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend import SCHEMA_PATH
from backend.models import Exercise, PreviousPerformance, new_id
from backend.persistence import (
    PersistenceError,
    WorkoutStore,
    create_database,
)


class FakeEvent:
    def __init__(self, clock, callback, interval, repeat):
        self.clock = clock
        self.callback = callback
        self.interval = interval
        self.repeat = repeat
        self.due = clock.time + interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """Deterministic stand-in for ``kivy.clock.Clock``.

    ``advance(seconds)`` moves time forward and fires every due callback in
    order, exactly once per elapsed interval.
    """

    def __init__(self):
        self.time = 0.0
        self.events: list[FakeEvent] = []

    def schedule_interval(self, callback, interval):
        event = FakeEvent(self, callback, interval, True)
        self.events.append(event)
        return event

    def schedule_once(self, callback, timeout=0):
        event = FakeEvent(self, callback, timeout, False)
        self.events.append(event)
        return event

    def now(self) -> float:
        return self.time

    @property
    def pending(self) -> list[FakeEvent]:
        return [e for e in self.events if not e.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.time + seconds
        while True:
            due = [e for e in self.pending if e.due <= target + 1e-9]
            if not due:
                break
            event = min(due, key=lambda e: e.due)
            self.time = event.due
            if event.repeat:
                event.due += event.interval
            else:
                event.cancelled = True
            event.callback(event.interval)
        self.time = target


class FakeStore(WorkoutStore):
    """In-memory :class:`WorkoutStore` recording every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.previous: dict[str, PreviousPerformance] = {}
        self.exercises: list[Exercise] = []
        self.inserted: list = []
        self.finalized: dict[str, tuple] = {}
        self.deleted: list[str] = []
        # operation name -> exception raised on the next call
        self.failures: dict[str, Exception] = {}

    def fail(self, operation: str, exc: Exception | None = None) -> None:
        self.failures[operation] = exc or PersistenceError("boom")

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        exc = self.failures.pop(name, None)
        if exc is not None:
            raise exc

    async def create_workout(self, name, start_time):
        self._record("create_workout", name, start_time)
        return new_id()

    async def add_exercise_to_workout(self, workout_id, exercise_id, order_index):
        self._record("add_exercise_to_workout", workout_id, exercise_id, order_index)
        return f"we-{exercise_id}"

    async def fetch_previous_performance(self, exercise_id):
        self._record("fetch_previous_performance", exercise_id)
        return self.previous.get(exercise_id)

    async def insert_completed_sets(self, sets):
        self._record("insert_completed_sets", list(sets))
        self.inserted.extend(sets)

    async def finalize_workout(self, workout_id, name, end_time):
        self._record("finalize_workout", workout_id, name, end_time)
        self.finalized[workout_id] = (name, end_time)

    async def delete_workout(self, workout_id):
        self._record("delete_workout", workout_id)
        self.deleted.append(workout_id)

    async def get_all_exercises(self):
        self._record("get_all_exercises")
        return list(self.exercises)

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def bench() -> Exercise:
    return Exercise(id="ex-bench", name="Bench Press")


@pytest.fixture
def squat() -> Exercise:
    return Exercise(id="ex-squat", name="Back Squat")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Create a temporary database from the bundled schema."""

    return create_database(tmp_path / "workout.db", SCHEMA_PATH)
