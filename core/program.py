"""Immutable curriculum model: programs, weeks, days, workouts and nutrition.

A Program is loaded once (see ``core.services.curriculum``) and treated as a
read-only snapshot. Collections are tuples so a snapshot can be shared across
threads and requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from core.errors import StructuralError

DAYS_PER_WEEK = 7
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# How an exercise progresses when the engine suggests a change.
AXIS_LOAD = "load"
AXIS_REPS = "reps"
AXIS_DURATION = "duration"
PROGRESSION_AXES = {AXIS_LOAD, AXIS_REPS, AXIS_DURATION}


@dataclass(frozen=True)
class Exercise:
    id: str
    name: str
    prescription: str
    progression_axis: str = AXIS_LOAD
    sort_order: int = 0
    notes: str = ""

    @property
    def is_load_bearing(self) -> bool:
        return self.progression_axis == AXIS_LOAD


@dataclass(frozen=True)
class WorkoutBlock:
    id: str
    title: str
    sort_order: int = 0
    exercises: tuple[Exercise, ...] = ()


@dataclass(frozen=True)
class Tip:
    text: str
    sort_order: int = 0


@dataclass(frozen=True)
class Day:
    id: str
    day_of_week: int
    type: str
    title: str = ""
    duration: str = ""
    diet_type: str = ""
    blocks: tuple[WorkoutBlock, ...] = ()
    tips: tuple[Tip, ...] = ()

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    def iter_exercises(self):
        for block in self.blocks:
            yield from block.exercises


@dataclass(frozen=True)
class Week:
    week_number: int
    days: tuple[Day, ...] = ()
    title: str = ""

    def day(self, day_of_week: int) -> Optional[Day]:
        for d in self.days:
            if d.day_of_week == day_of_week:
                return d
        return None


@dataclass(frozen=True)
class Recipe:
    ingredients: tuple[str, ...] = ()
    instructions: tuple[str, ...] = ()
    prep_minutes: Optional[int] = None


@dataclass(frozen=True)
class Alternative:
    name: str
    description: str = ""
    sort_order: int = 0


@dataclass(frozen=True)
class Meal:
    name: str
    meal_type: str
    description: str = ""
    time: str = ""
    sort_order: int = 0
    recipe: Optional[Recipe] = None
    alternatives: tuple[Alternative, ...] = ()


@dataclass(frozen=True)
class Snack:
    name: str
    description: str = ""
    sort_order: int = 0


@dataclass(frozen=True)
class NutritionPlan:
    day_of_week: int
    diet_type: str = ""
    calories: Optional[int] = None
    meals: tuple[Meal, ...] = ()
    snacks: tuple[Snack, ...] = ()


@dataclass(frozen=True)
class Program:
    id: str
    name: str
    start_date: date
    week_count: int
    is_default: bool = False
    weeks: tuple[Week, ...] = ()
    nutrition_plans: tuple[NutritionPlan, ...] = ()
    description: str = ""
    _day_index: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        index = {d.id: (w.week_number, d) for w in self.weeks for d in w.days}
        object.__setattr__(self, "_day_index", index)

    def week(self, week_number: int) -> Optional[Week]:
        for w in self.weeks:
            if w.week_number == week_number:
                return w
        return None

    def find_day(self, day_id: str) -> Optional[tuple[int, Day]]:
        """Return ``(week_number, day)`` for a day id, or None."""
        return self._day_index.get(day_id)

    def nutrition_for(self, day_of_week: int) -> Optional[NutritionPlan]:
        for plan in self.nutrition_plans:
            if plan.day_of_week == day_of_week:
                return plan
        return None

    def find_exercise(self, exercise_id: str) -> Optional[Exercise]:
        for w in self.weeks:
            for d in w.days:
                for ex in d.iter_exercises():
                    if ex.id == exercise_id:
                        return ex
        return None


def validate_program(program: Program) -> Program:
    """Check structural invariants and return the program unchanged.

    Collects every problem before raising so a broken curriculum can be
    fixed in one pass.
    """
    problems: list[str] = []
    if program.week_count < 1:
        problems.append(f"week_count must be >= 1, got {program.week_count}")

    seen_weeks: set[int] = set()
    seen_day_ids: set[str] = set()
    for w in program.weeks:
        if w.week_number in seen_weeks:
            problems.append(f"duplicate week_number {w.week_number}")
        seen_weeks.add(w.week_number)
        if not 1 <= w.week_number <= max(program.week_count, 0):
            problems.append(f"week_number {w.week_number} outside 1..{program.week_count}")

        days_seen: set[int] = set()
        for d in w.days:
            if not 0 <= d.day_of_week < DAYS_PER_WEEK:
                problems.append(f"week {w.week_number}: day_of_week {d.day_of_week} outside 0..6")
            if d.day_of_week in days_seen:
                problems.append(f"week {w.week_number}: duplicate day_of_week {d.day_of_week}")
            days_seen.add(d.day_of_week)
            if d.id in seen_day_ids:
                problems.append(f"duplicate day id {d.id!r}")
            seen_day_ids.add(d.id)
            for ex in d.iter_exercises():
                if ex.progression_axis not in PROGRESSION_AXES:
                    problems.append(f"exercise {ex.id!r}: unknown progression_axis {ex.progression_axis!r}")
        missing_days = sorted(set(range(DAYS_PER_WEEK)) - days_seen)
        if missing_days:
            problems.append(f"week {w.week_number}: missing days {missing_days}")

    missing_weeks = sorted(set(range(1, program.week_count + 1)) - seen_weeks)
    if missing_weeks:
        problems.append(f"missing weeks {missing_weeks}")

    nutrition_days = [n.day_of_week for n in program.nutrition_plans]
    if len(nutrition_days) != len(set(nutrition_days)):
        problems.append("duplicate nutrition plan for a day_of_week")

    if problems:
        raise StructuralError(f"program {program.id!r} is structurally invalid", problems)
    return program
