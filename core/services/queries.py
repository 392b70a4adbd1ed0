"""Query surface consumed by an outer API layer.

Reads go through a :class:`ProgramCatalog` of loaded snapshots and the
performance log store; ``user_id`` is always passed explicitly.
"""

from __future__ import annotations

from datetime import date
import logging
import threading
from typing import Iterable, Optional

from core.errors import ExerciseNotFoundError, ProgramNotFoundError
from core.program import NutritionPlan, Program, validate_program
from core.services.calendar import ResolvedDay, resolve
from core.services.log_store import PerformanceLogStore
from core.services.prescription import parse_prescription
from core.services.progression import ProgressionConfig, ProgressionSuggestion, suggest

logger = logging.getLogger(__name__)


class ProgramCatalog:
    """Registry of validated, immutable program snapshots."""

    def __init__(self, programs: Iterable[Program] = ()):
        self._lock = threading.Lock()
        self._programs: dict[str, Program] = {}
        for program in programs:
            self.register(program)

    def register(self, program: Program) -> Program:
        validate_program(program)
        with self._lock:
            self._programs[program.id] = program
        return program

    def get(self, program_id: str) -> Program:
        with self._lock:
            program = self._programs.get(program_id)
        if program is None:
            raise ProgramNotFoundError(f"program {program_id!r} not found")
        return program

    def default(self) -> Program:
        with self._lock:
            programs = list(self._programs.values())
        for program in programs:
            if program.is_default:
                return program
        if len(programs) == 1:
            return programs[0]
        raise ProgramNotFoundError("no default program registered")


def get_resolved_day(catalog: ProgramCatalog, program_id: str, on: date) -> ResolvedDay:
    return resolve(catalog.get(program_id), on)


def get_nutrition_for_day(catalog: ProgramCatalog, program_id: str, day_of_week: int) -> Optional[NutritionPlan]:
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be between 0 and 6")
    return catalog.get(program_id).nutrition_for(day_of_week)


def suggest_progression(
    catalog: ProgramCatalog,
    store: PerformanceLogStore,
    user_id: int,
    exercise_id: str,
    program_id: Optional[str] = None,
    on: Optional[date] = None,
    config: Optional[ProgressionConfig] = None,
) -> ProgressionSuggestion:
    """Look up the exercise, read its history and ask the engine for a suggestion.

    Exercise ids recur across weeks with week-specific prescriptions; pass
    ``on`` to use the prescription of the day resolved for that date.
    """
    program = catalog.get(program_id) if program_id else catalog.default()
    exercise = None
    if on is not None:
        day = resolve(program, on).day
        exercise = next((e for e in day.iter_exercises() if e.id == exercise_id), None)
    if exercise is None:
        exercise = program.find_exercise(exercise_id)
    if exercise is None:
        raise ExerciseNotFoundError(f"exercise {exercise_id!r} not in program {program.id!r}")
    cfg = config or ProgressionConfig.from_settings()
    prescription = parse_prescription(exercise.prescription, exercise.progression_axis)
    history = store.history_for_exercise(user_id, exercise_id, limit=cfg.sessions_considered)
    return suggest(user_id, exercise, prescription, history, cfg)
