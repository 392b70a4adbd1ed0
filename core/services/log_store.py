"""Performance log store: the read/write boundary for workout history.

The core only depends on :class:`PerformanceLogStore`. Reads
(``history_for_exercise``, ``get_workout_log``) are idempotent; the write
path is ``start_workout_log`` -> ``add_exercise_log`` -> ``append_set_log``
-> ``complete_workout_log``. A workout log becomes immutable history once
``completed_at`` is set.

History ordering contract: most recent ``workout_date`` first, ties broken
by ``started_at`` descending, only completed workouts, sets within a
session by ``set_number``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
import itertools
import logging
import threading
from typing import Iterable, Optional

from core.errors import (
    InvalidSetSequenceError,
    NotFoundError,
    WorkoutLogFinalizedError,
    WorkoutLogNotFoundError,
    WorkoutLogOwnershipError,
)
from core.logging_config import log_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetLog:
    set_number: int
    weight: Optional[float] = None
    reps: Optional[int] = None
    duration_sec: Optional[int] = None
    rpe: Optional[float] = None
    completed: bool = True
    notes: str = ""
    id: Optional[int] = None
    client_id: Optional[str] = None  # caller-supplied idempotency key


@dataclass(frozen=True)
class ExerciseLog:
    id: int
    workout_log_id: int
    exercise_id: str
    sort_order: int = 0
    set_logs: tuple[SetLog, ...] = ()


@dataclass(frozen=True)
class WorkoutLog:
    id: int
    user_id: int
    day_id: str
    workout_date: date
    started_at: datetime
    completed_at: Optional[datetime] = None
    overall_rpe: Optional[float] = None
    notes: str = ""
    exercise_logs: tuple[ExerciseLog, ...] = ()

    @property
    def is_finalized(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True)
class SetLogRecord:
    """One set from history together with the session it belongs to."""
    workout_log_id: int
    workout_date: date
    started_at: datetime
    overall_rpe: Optional[float]
    exercise_log_id: int
    set_log: SetLog


def validate_set_sequence(set_numbers: Iterable[int]) -> None:
    """Raise InvalidSetSequenceError unless numbers run 1..n in order."""
    for expected, actual in enumerate(set_numbers, start=1):
        if actual != expected:
            raise InvalidSetSequenceError(f"expected set_number {expected}, got {actual}")


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware timestamps become naive UTC so they order against naive ones."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class PerformanceLogStore(ABC):
    """Contract the core reads history from and writes logs through.

    Every call takes an explicit ``user_id``; implementations must never
    look up identity from ambient context.
    """

    @abstractmethod
    def start_workout_log(self, user_id: int, day_id: str, workout_date: date, started_at: Optional[datetime] = None) -> WorkoutLog:
        """Create (or return the existing) log for ``(user, day_id, workout_date)``."""

    @abstractmethod
    def add_exercise_log(self, user_id: int, workout_log_id: int, exercise_id: str) -> ExerciseLog:
        ...

    @abstractmethod
    def append_set_log(self, user_id: int, exercise_log_id: int, set_log: SetLog) -> int:
        """Append the next set; returns the SetLog id.

        Repeating an append with the same ``client_id`` returns the original id.
        """

    @abstractmethod
    def complete_workout_log(
        self,
        user_id: int,
        workout_log_id: int,
        overall_rpe: Optional[float] = None,
        notes: str = "",
        completed_at: Optional[datetime] = None,
    ) -> WorkoutLog:
        ...

    @abstractmethod
    def get_workout_log(self, user_id: int, day_id: str, workout_date: date) -> WorkoutLog:
        """Raise WorkoutLogNotFoundError when no log exists."""

    @abstractmethod
    def history_for_exercise(self, user_id: int, exercise_id: str, limit: Optional[int] = None) -> list[SetLogRecord]:
        """Completed history for one exercise, newest session first.

        ``limit`` caps the number of sessions, not sets.
        """


class InMemoryLogStore(PerformanceLogStore):
    """Thread-safe dict-backed store, used for tests and local tooling."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._workouts: dict[int, WorkoutLog] = {}
        self._exercise_owner: dict[int, int] = {}  # exercise_log_id -> workout_log_id

    def _next_id(self) -> int:
        return next(self._ids)

    def _owned_workout(self, user_id: int, workout_log_id: int) -> WorkoutLog:
        log = self._workouts.get(workout_log_id)
        if log is None:
            raise WorkoutLogNotFoundError(f"workout log {workout_log_id} not found")
        if log.user_id != user_id:
            raise WorkoutLogOwnershipError(f"workout log {workout_log_id} belongs to another user")
        return log

    def _mutable_workout(self, user_id: int, workout_log_id: int) -> WorkoutLog:
        log = self._owned_workout(user_id, workout_log_id)
        if log.is_finalized:
            raise WorkoutLogFinalizedError(f"workout log {workout_log_id} is completed and read-only")
        return log

    def start_workout_log(self, user_id, day_id, workout_date, started_at=None):
        with self._lock:
            for log in self._workouts.values():
                if (log.user_id, log.day_id, log.workout_date) == (user_id, day_id, workout_date):
                    return log
            log = WorkoutLog(
                id=self._next_id(),
                user_id=user_id,
                day_id=day_id,
                workout_date=workout_date,
                started_at=started_at or datetime.utcnow(),
            )
            self._workouts[log.id] = log
        logger.info("workout_log_started", extra=log_context(user_id=user_id, workout_log_id=log.id, day_id=day_id))
        return log

    def add_exercise_log(self, user_id, workout_log_id, exercise_id):
        with self._lock:
            log = self._mutable_workout(user_id, workout_log_id)
            entry = ExerciseLog(
                id=self._next_id(),
                workout_log_id=log.id,
                exercise_id=exercise_id,
                sort_order=len(log.exercise_logs),
            )
            self._workouts[log.id] = replace(log, exercise_logs=log.exercise_logs + (entry,))
            self._exercise_owner[entry.id] = log.id
        return entry

    def append_set_log(self, user_id, exercise_log_id, set_log):
        with self._lock:
            workout_id = self._exercise_owner.get(exercise_log_id)
            if workout_id is None:
                raise NotFoundError(f"exercise log {exercise_log_id} not found")
            log = self._mutable_workout(user_id, workout_id)
            idx, entry = next((i, e) for i, e in enumerate(log.exercise_logs) if e.id == exercise_log_id)
            if set_log.client_id:
                for existing in entry.set_logs:
                    if existing.client_id == set_log.client_id:
                        return existing.id
            validate_set_sequence([s.set_number for s in entry.set_logs] + [set_log.set_number])
            stored = replace(set_log, id=self._next_id())
            entries = list(log.exercise_logs)
            entries[idx] = replace(entry, set_logs=entry.set_logs + (stored,))
            self._workouts[log.id] = replace(log, exercise_logs=tuple(entries))
        logger.debug(
            "set_log_appended",
            extra=log_context(user_id=user_id, exercise_log_id=exercise_log_id, set_number=stored.set_number),
        )
        return stored.id

    def complete_workout_log(self, user_id, workout_log_id, overall_rpe=None, notes="", completed_at=None):
        with self._lock:
            log = self._mutable_workout(user_id, workout_log_id)
            log = replace(
                log,
                completed_at=completed_at or datetime.utcnow(),
                overall_rpe=overall_rpe,
                notes=notes or log.notes,
            )
            self._workouts[log.id] = log
        logger.info("workout_log_completed", extra=log_context(user_id=user_id, workout_log_id=log.id))
        return log

    def get_workout_log(self, user_id, day_id, workout_date):
        with self._lock:
            for log in self._workouts.values():
                if (log.user_id, log.day_id, log.workout_date) == (user_id, day_id, workout_date):
                    return log
        raise WorkoutLogNotFoundError(f"no workout log for user {user_id} day {day_id!r} on {workout_date.isoformat()}")

    def history_for_exercise(self, user_id, exercise_id, limit=None):
        with self._lock:
            workouts = [w for w in self._workouts.values() if w.user_id == user_id and w.is_finalized]
        workouts.sort(key=lambda w: (w.workout_date, naive_utc(w.started_at) or datetime.min, w.id), reverse=True)
        records: list[SetLogRecord] = []
        sessions = 0
        for w in workouts:
            entries = [e for e in w.exercise_logs if e.exercise_id == exercise_id and e.set_logs]
            if not entries:
                continue
            if limit is not None and sessions >= limit:
                break
            sessions += 1
            for e in entries:
                for s in sorted(e.set_logs, key=lambda s: s.set_number):
                    records.append(
                        SetLogRecord(
                            workout_log_id=w.id,
                            workout_date=w.workout_date,
                            started_at=w.started_at,
                            overall_rpe=w.overall_rpe,
                            exercise_log_id=e.id,
                            set_log=s,
                        )
                    )
        return records
