"""SQLAlchemy-backed PerformanceLogStore."""

from __future__ import annotations

from datetime import date, datetime
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from core.db import session_scope
from core.errors import (
    NotFoundError,
    WorkoutLogFinalizedError,
    WorkoutLogNotFoundError,
    WorkoutLogOwnershipError,
)
from core.logging_config import log_context
from core.models import ExerciseLogRow, SetLogRow, WorkoutLogRow
from core.services.log_store import (
    ExerciseLog,
    PerformanceLogStore,
    SetLog,
    SetLogRecord,
    WorkoutLog,
    validate_set_sequence,
)

logger = logging.getLogger(__name__)


def _set_from_row(row: SetLogRow) -> SetLog:
    return SetLog(
        id=row.id,
        set_number=row.set_number,
        weight=row.weight,
        reps=row.reps,
        duration_sec=row.duration_sec,
        rpe=row.rpe,
        completed=bool(row.completed),
        notes=row.notes or "",
        client_id=row.client_id,
    )


def _exercise_from_row(row: ExerciseLogRow) -> ExerciseLog:
    return ExerciseLog(
        id=row.id,
        workout_log_id=row.workout_log_id,
        exercise_id=row.exercise_id,
        sort_order=row.sort_order,
        set_logs=tuple(_set_from_row(s) for s in row.set_logs),
    )


def _workout_from_row(row: WorkoutLogRow) -> WorkoutLog:
    return WorkoutLog(
        id=row.id,
        user_id=row.user_id,
        day_id=row.day_id,
        workout_date=row.workout_date,
        started_at=row.started_at,
        completed_at=row.completed_at,
        overall_rpe=row.overall_rpe,
        notes=row.notes or "",
        exercise_logs=tuple(_exercise_from_row(e) for e in row.exercise_logs),
    )


def _load_options():
    return selectinload(WorkoutLogRow.exercise_logs).selectinload(ExerciseLogRow.set_logs)


class SqlLogStore(PerformanceLogStore):
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._factory = session_factory

    def _mutable_row(self, s: Session, user_id: int, workout_log_id: int) -> WorkoutLogRow:
        row = s.get(WorkoutLogRow, workout_log_id)
        if row is None:
            raise WorkoutLogNotFoundError(f"workout log {workout_log_id} not found")
        if row.user_id != user_id:
            raise WorkoutLogOwnershipError(f"workout log {workout_log_id} belongs to another user")
        if row.completed_at is not None:
            raise WorkoutLogFinalizedError(f"workout log {workout_log_id} is completed and read-only")
        return row

    def start_workout_log(self, user_id, day_id, workout_date, started_at=None):
        with session_scope(self._factory) as s:
            row = s.execute(
                select(WorkoutLogRow)
                .options(_load_options())
                .where(
                    WorkoutLogRow.user_id == user_id,
                    WorkoutLogRow.day_id == day_id,
                    WorkoutLogRow.workout_date == workout_date,
                )
            ).scalar_one_or_none()
            if row is None:
                row = WorkoutLogRow(
                    user_id=user_id,
                    day_id=day_id,
                    workout_date=workout_date,
                    started_at=started_at or datetime.utcnow(),
                    notes="",
                )
                s.add(row)
                s.flush()
                logger.info("workout_log_started", extra=log_context(user_id=user_id, workout_log_id=row.id, day_id=day_id))
            return _workout_from_row(row)

    def add_exercise_log(self, user_id, workout_log_id, exercise_id):
        with session_scope(self._factory) as s:
            workout = self._mutable_row(s, user_id, workout_log_id)
            row = ExerciseLogRow(
                workout_log_id=workout.id,
                exercise_id=exercise_id,
                sort_order=len(workout.exercise_logs),
            )
            s.add(row)
            s.flush()
            return ExerciseLog(id=row.id, workout_log_id=workout.id, exercise_id=exercise_id, sort_order=row.sort_order)

    def append_set_log(self, user_id, exercise_log_id, set_log):
        with session_scope(self._factory) as s:
            entry = s.get(ExerciseLogRow, exercise_log_id)
            if entry is None:
                raise NotFoundError(f"exercise log {exercise_log_id} not found")
            self._mutable_row(s, user_id, entry.workout_log_id)
            if set_log.client_id:
                existing = next((r for r in entry.set_logs if r.client_id == set_log.client_id), None)
                if existing is not None:
                    return existing.id
            validate_set_sequence([r.set_number for r in entry.set_logs] + [set_log.set_number])
            row = SetLogRow(
                exercise_log_id=entry.id,
                set_number=set_log.set_number,
                weight=set_log.weight,
                reps=set_log.reps,
                duration_sec=set_log.duration_sec,
                rpe=set_log.rpe,
                completed=set_log.completed,
                notes=set_log.notes,
                client_id=set_log.client_id,
            )
            s.add(row)
            try:
                s.flush()
            except IntegrityError:
                logger.warning("set_log_conflict", extra=log_context(user_id=user_id, exercise_log_id=exercise_log_id))
                raise
            return row.id

    def complete_workout_log(self, user_id, workout_log_id, overall_rpe=None, notes="", completed_at=None):
        with session_scope(self._factory) as s:
            row = self._mutable_row(s, user_id, workout_log_id)
            row.completed_at = completed_at or datetime.utcnow()
            row.overall_rpe = overall_rpe
            if notes:
                row.notes = notes
            s.flush()
            logger.info("workout_log_completed", extra=log_context(user_id=user_id, workout_log_id=row.id))
            return _workout_from_row(row)

    def get_workout_log(self, user_id: int, day_id: str, workout_date: date) -> WorkoutLog:
        with session_scope(self._factory) as s:
            row = s.execute(
                select(WorkoutLogRow)
                .options(_load_options())
                .where(
                    WorkoutLogRow.user_id == user_id,
                    WorkoutLogRow.day_id == day_id,
                    WorkoutLogRow.workout_date == workout_date,
                )
            ).scalar_one_or_none()
            if row is None:
                raise WorkoutLogNotFoundError(
                    f"no workout log for user {user_id} day {day_id!r} on {workout_date.isoformat()}"
                )
            return _workout_from_row(row)

    def history_for_exercise(self, user_id, exercise_id, limit=None):
        with session_scope(self._factory) as s:
            workout_ids = select(ExerciseLogRow.workout_log_id).where(ExerciseLogRow.exercise_id == exercise_id)
            stmt = (
                select(WorkoutLogRow)
                .options(_load_options())
                .where(
                    WorkoutLogRow.user_id == user_id,
                    WorkoutLogRow.completed_at.is_not(None),
                    WorkoutLogRow.id.in_(workout_ids),
                )
                .order_by(WorkoutLogRow.workout_date.desc(), WorkoutLogRow.started_at.desc(), WorkoutLogRow.id.desc())
            )
            records: list[SetLogRecord] = []
            sessions = 0
            for w in s.execute(stmt).scalars():
                entries = [e for e in w.exercise_logs if e.exercise_id == exercise_id and e.set_logs]
                if not entries:
                    continue
                if limit is not None and sessions >= limit:
                    break
                sessions += 1
                for e in entries:
                    for row in e.set_logs:
                        records.append(
                            SetLogRecord(
                                workout_log_id=w.id,
                                workout_date=w.workout_date,
                                started_at=w.started_at,
                                overall_rpe=w.overall_rpe,
                                exercise_log_id=e.id,
                                set_log=_set_from_row(row),
                            )
                        )
            return records
