"""Load the default curriculum and optionally seed demo workout history.

Usage: ``python -m db.seed`` creates the log tables, seeds two completed
weeks of history for a demo user and prints today's prescription.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
import logging

from core.config import get_settings
from core.db import init_db
from core.logging_config import log_context, setup_logging
from core.program import AXIS_DURATION, AXIS_REPS, Program
from core.services.calendar import resolve, resolve_range
from core.services.curriculum import load_program
from core.services.log_store import PerformanceLogStore, SetLog
from core.services.queries import ProgramCatalog
from core.services.sql_log_store import SqlLogStore
from db.curriculum import default_program_data

logger = logging.getLogger(__name__)

DEMO_USER_ID = 1


def build_catalog() -> ProgramCatalog:
    return ProgramCatalog([load_program(default_program_data())])


def seed_demo_history(store: PerformanceLogStore, program: Program, user_id: int = DEMO_USER_ID, weeks: int = 2) -> int:
    """Log every training day of the first ``weeks`` weeks as completed.

    Returns the number of workout logs written.
    """
    written = 0
    for resolved in resolve_range(program, program.start_date, days=weeks * 7):
        if not resolved.workout_blocks:
            continue
        started = datetime.combine(resolved.date, time(18, 0))
        log = store.start_workout_log(user_id, resolved.day.id, resolved.date, started_at=started)
        if log.is_finalized:
            continue
        for exercise in resolved.day.iter_exercises():
            entry = store.add_exercise_log(user_id, log.id, exercise.id)
            for n in range(1, 4):
                if exercise.progression_axis == AXIS_DURATION:
                    set_log = SetLog(set_number=n, duration_sec=30, rpe=6.5 + 0.5 * n)
                elif exercise.progression_axis == AXIS_REPS:
                    set_log = SetLog(set_number=n, reps=10, rpe=6.0 + 0.5 * n)
                else:
                    set_log = SetLog(set_number=n, weight=60.0, reps=8, rpe=6.0 + 0.5 * n)
                store.append_set_log(user_id, entry.id, set_log)
        store.complete_workout_log(user_id, log.id, overall_rpe=7, completed_at=started + timedelta(hours=1))
        written += 1
    logger.info("demo_history_seeded", extra=log_context(user_id=user_id, workouts=written))
    return written


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    init_db()
    catalog = build_catalog()
    program = catalog.default()
    seed_demo_history(SqlLogStore(), program)
    today = resolve(program, max(date.today(), program.start_date))
    print(f"{today.date.isoformat()}: week {today.week_number}, {today.day.day_name} - {today.day.title}")


if __name__ == "__main__":
    main()
