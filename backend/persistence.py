"""Storage of finished workouts.

The active session only talks to a :class:`WorkoutStore`.  The bundled
implementation keeps everything in a local SQLite database accessed through
:mod:`aiosqlite`, so writes never block the UI event loop.
"""

from __future__ import annotations

import abc
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Iterable

import aiosqlite

from backend import DEFAULT_DB_PATH, SCHEMA_PATH
from backend.models import (
    CompletedSetPayload,
    Exercise,
    PreviousPerformance,
    new_id,
)


class PersistenceError(RuntimeError):
    """Raised when the workout store cannot complete a request."""


class AuthenticationError(PersistenceError):
    """Raised when no current user is available for a write."""


class WorkoutStore(abc.ABC):
    """Operations the active session needs from the storage service."""

    @abc.abstractmethod
    async def create_workout(self, name: str, start_time: float) -> str:
        """Create a workout row and return its id."""

    @abc.abstractmethod
    async def add_exercise_to_workout(
        self, workout_id: str, exercise_id: str, order_index: int
    ) -> str:
        """Link ``exercise_id`` to ``workout_id`` and return the link id."""

    @abc.abstractmethod
    async def fetch_previous_performance(
        self, exercise_id: str
    ) -> PreviousPerformance | None:
        """Return the last recorded weight/reps for ``exercise_id``."""

    @abc.abstractmethod
    async def insert_completed_sets(self, sets: list[CompletedSetPayload]) -> None:
        """Store finished sets."""

    @abc.abstractmethod
    async def finalize_workout(self, workout_id: str, name: str, end_time: float) -> None:
        """Mark ``workout_id`` finished."""

    @abc.abstractmethod
    async def delete_workout(self, workout_id: str) -> None:
        """Remove ``workout_id`` and everything recorded for it."""

    @abc.abstractmethod
    async def get_all_exercises(self) -> list[Exercise]:
        """Return the exercise library ordered by name."""


def create_database(db_path: Path = DEFAULT_DB_PATH, schema_path: Path = SCHEMA_PATH) -> Path:
    """Create ``db_path`` from ``schema_path`` if its tables are missing."""

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(str(db_path)) as conn:
        with open(schema_path, "r", encoding="utf-8") as fh:
            conn.executescript(fh.read())
    return db_path


class SQLiteWorkoutStore(WorkoutStore):
    """:class:`WorkoutStore` backed by a local SQLite file."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, user_id: str | None = None):
        self.db_path = Path(db_path)
        self.user_id = user_id

    @asynccontextmanager
    async def _connection(self):
        try:
            conn = await aiosqlite.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot open {self.db_path}: {exc}") from exc
        try:
            yield conn
            await conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        finally:
            await conn.close()

    def _require_user(self) -> str:
        if not self.user_id:
            raise AuthenticationError("No current user")
        return self.user_id

    async def create_workout(self, name: str, start_time: float) -> str:
        user_id = self._require_user()
        workout_id = new_id()
        async with self._connection() as conn:
            await conn.execute(
                "INSERT INTO workouts (id, user_id, name, started_at) VALUES (?, ?, ?, ?)",
                (workout_id, user_id, name, start_time),
            )
        logging.info("Created workout %s", workout_id)
        return workout_id

    async def add_exercise_to_workout(
        self, workout_id: str, exercise_id: str, order_index: int
    ) -> str:
        user_id = self._require_user()
        link_id = new_id()
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO workout_exercises
                    (id, workout_id, exercise_id, order_index, user_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (link_id, workout_id, exercise_id, order_index, user_id),
            )
        return link_id

    async def fetch_previous_performance(
        self, exercise_id: str
    ) -> PreviousPerformance | None:
        if not self.user_id:
            return None
        async with self._connection() as conn:
            cursor = await conn.execute(
                """
                SELECT ws.weight, ws.reps
                  FROM workout_sets ws
                  JOIN workout_exercises we ON we.id = ws.workout_exercise_id
                  JOIN workouts w ON w.id = we.workout_id
                 WHERE we.exercise_id = ?
                   AND w.user_id = ?
                   AND w.ended_at IS NOT NULL
                 ORDER BY w.ended_at DESC, ws.weight DESC, ws.reps DESC
                 LIMIT 1
                """,
                (exercise_id, self.user_id),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return PreviousPerformance(weight=float(row[0]), reps=int(row[1]))

    async def insert_completed_sets(self, sets: Iterable[CompletedSetPayload]) -> None:
        user_id = self._require_user()
        rows = [
            (
                new_id(),
                s.workout_exercise_id,
                s.set_number,
                s.weight,
                s.reps,
                s.rest_seconds,
                user_id,
            )
            for s in sets
        ]
        if not rows:
            return
        async with self._connection() as conn:
            await conn.executemany(
                """
                INSERT INTO workout_sets
                    (id, workout_exercise_id, set_number, weight, reps, rest_seconds, user_id)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )

    async def finalize_workout(self, workout_id: str, name: str, end_time: float) -> None:
        self._require_user()
        async with self._connection() as conn:
            cursor = await conn.execute(
                "UPDATE workouts SET name = ?, ended_at = ? WHERE id = ?",
                (name, end_time, workout_id),
            )
            if cursor.rowcount == 0:
                raise PersistenceError(f"Workout {workout_id} not found")
        logging.info("Finalized workout %s", workout_id)

    async def delete_workout(self, workout_id: str) -> None:
        self._require_user()
        async with self._connection() as conn:
            await conn.execute(
                """
                DELETE FROM workout_sets WHERE workout_exercise_id IN (
                    SELECT id FROM workout_exercises WHERE workout_id = ?
                )
                """,
                (workout_id,),
            )
            await conn.execute(
                "DELETE FROM workout_exercises WHERE workout_id = ?", (workout_id,)
            )
            await conn.execute("DELETE FROM workouts WHERE id = ?", (workout_id,))
        logging.info("Deleted workout %s", workout_id)

    async def get_all_exercises(self) -> list[Exercise]:
        async with self._connection() as conn:
            cursor = await conn.execute("SELECT id, name FROM exercises ORDER BY name")
            rows = await cursor.fetchall()
        return [Exercise(id=row[0], name=row[1]) for row in rows]
