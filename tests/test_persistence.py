import asyncio
import sqlite3

import pytest

from backend.models import CompletedSetPayload, Exercise, PreviousPerformance
from backend.persistence import (
    AuthenticationError,
    PersistenceError,
    SQLiteWorkoutStore,
)

BENCH = "3f1c2a9e-0b6d-4f5e-9a51-6c2d8e7b1a01"


@pytest.fixture
def db_store(db_path):
    return SQLiteWorkoutStore(db_path, user_id="user-1")


async def record_workout(store, end_time, sets):
    workout_id = await store.create_workout("W", end_time - 100)
    link = await store.add_exercise_to_workout(workout_id, BENCH, 0)
    await store.insert_completed_sets(
        [CompletedSetPayload(link, i, w, r, None) for i, (w, r) in enumerate(sets, 1)]
    )
    await store.finalize_workout(workout_id, "W", end_time)
    return workout_id


def test_exercise_library_is_seeded(db_store):
    exercises = asyncio.run(db_store.get_all_exercises())
    names = [e.name for e in exercises]
    assert names == sorted(names)
    assert Exercise(BENCH, "Bench Press") in exercises


def test_full_workout_round_trip(db_store, db_path):
    workout_id = asyncio.run(record_workout(db_store, 1000.0, [(100.0, 5), (102.5, 3)]))
    with sqlite3.connect(db_path) as conn:
        name, ended = conn.execute(
            "SELECT name, ended_at FROM workouts WHERE id = ?", (workout_id,)
        ).fetchone()
        rows = conn.execute(
            "SELECT set_number, weight, reps, user_id FROM workout_sets ORDER BY set_number"
        ).fetchall()
    assert (name, ended) == ("W", 1000.0)
    assert rows == [(1, 100.0, 5, "user-1"), (2, 102.5, 3, "user-1")]


def test_previous_performance_uses_latest_finished_workout(db_store):
    async def scenario():
        await record_workout(db_store, 1000.0, [(140.0, 5)])
        await record_workout(db_store, 2000.0, [(100.0, 5), (100.0, 8), (90.0, 10)])
        # unfinished workouts are ignored
        open_id = await db_store.create_workout("Open", 3000.0)
        link = await db_store.add_exercise_to_workout(open_id, BENCH, 0)
        await db_store.insert_completed_sets([CompletedSetPayload(link, 1, 200.0, 1)])
        return await db_store.fetch_previous_performance(BENCH)

    assert asyncio.run(scenario()) == PreviousPerformance(100.0, 8)


def test_previous_performance_absent(db_store):
    assert asyncio.run(db_store.fetch_previous_performance(BENCH)) is None


def test_delete_workout_removes_dependents(db_store, db_path):
    workout_id = asyncio.run(record_workout(db_store, 1000.0, [(100.0, 5)]))
    asyncio.run(db_store.delete_workout(workout_id))
    with sqlite3.connect(db_path) as conn:
        counts = [
            conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for table in ("workouts", "workout_exercises", "workout_sets")
        ]
    assert counts == [0, 0, 0]


def test_writes_require_user(db_path):
    store = SQLiteWorkoutStore(db_path, user_id=None)
    with pytest.raises(AuthenticationError):
        asyncio.run(store.create_workout("W", 0.0))
    with pytest.raises(AuthenticationError):
        asyncio.run(store.finalize_workout("missing", "W", 1.0))
    assert asyncio.run(store.fetch_previous_performance(BENCH)) is None


def test_finalize_unknown_workout_fails(db_store):
    with pytest.raises(PersistenceError):
        asyncio.run(db_store.finalize_workout("missing", "W", 1.0))


def test_database_errors_are_wrapped(tmp_path):
    store = SQLiteWorkoutStore(tmp_path / "empty.db", user_id="user-1")
    with pytest.raises(PersistenceError):
        asyncio.run(store.create_workout("W", 0.0))
