"""Record a performed workout against the curriculum.

Checks that the logged day is the one the calendar prescribes for the date
before anything is written, then writes through the performance log store.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from core.errors import ExerciseNotFoundError
from core.logging_config import log_context
from core.services.calendar import validate_workout_log
from core.services.log_store import ExerciseLog, PerformanceLogStore, SetLog, WorkoutLog
from core.services.queries import ProgramCatalog
from core.validators import ExerciseLogInput, WorkoutCompletionInput, WorkoutStartInput

logger = logging.getLogger(__name__)


def _unlogged_sets(exercise_log: ExerciseLog, entry: ExerciseLogInput) -> list[SetLog]:
    """Sets from ``entry`` not already stored, matched by client_id or set_number."""
    client_ids = {s.client_id for s in exercise_log.set_logs if s.client_id}
    numbers = {s.set_number for s in exercise_log.set_logs}
    return [
        s.to_set_log()
        for s in entry.sets
        if s.set_number not in numbers and not (s.client_id and s.client_id in client_ids)
    ]


def persist_workout(
    catalog: ProgramCatalog,
    store: PerformanceLogStore,
    start: WorkoutStartInput,
    exercises: Sequence[ExerciseLogInput],
    completion: Optional[WorkoutCompletionInput] = None,
) -> WorkoutLog:
    """Start (or resume) the workout log, append new sets, optionally finalize it.

    Re-sending the same payload is a no-op: exercise logs already on the
    workout are reused and sets already stored are skipped.
    """
    program = catalog.get(start.program_id)
    resolved = validate_workout_log(program, start.day_id, start.workout_date)
    prescribed = {e.id for e in resolved.day.iter_exercises()}
    for entry in exercises:
        if entry.exercise_id not in prescribed:
            raise ExerciseNotFoundError(f"exercise {entry.exercise_id!r} is not prescribed on day {start.day_id!r}")

    log = store.start_workout_log(start.user_id, start.day_id, start.workout_date)
    existing = {e.exercise_id: e for e in log.exercise_logs}
    for entry in exercises:
        exercise_log = existing.get(entry.exercise_id)
        if exercise_log is None:
            exercise_log = store.add_exercise_log(start.user_id, log.id, entry.exercise_id)
            existing[entry.exercise_id] = exercise_log
        for set_log in _unlogged_sets(exercise_log, entry):
            store.append_set_log(start.user_id, exercise_log.id, set_log)

    if completion is not None and not log.is_finalized:
        log = store.complete_workout_log(
            start.user_id,
            log.id,
            overall_rpe=completion.overall_rpe,
            notes=completion.notes,
        )
    else:
        log = store.get_workout_log(start.user_id, start.day_id, start.workout_date)
    logger.info(
        "workout_persisted",
        extra=log_context(
            user_id=start.user_id,
            program_id=program.id,
            workout_log_id=log.id,
            week_number=resolved.week_number,
            exercises=len(exercises),
            completed=log.is_finalized,
        ),
    )
    return log
