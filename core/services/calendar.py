"""Calendar resolution: map a calendar date onto a program's rotation.

A program repeats its ``week_count`` weeks indefinitely from ``start_date``.
Date arithmetic is on calendar dates only, so results never depend on a
timezone. Nutrition repeats weekly and is looked up by day_of_week alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from core.errors import DayMismatchError, DayNotFoundError, OutOfRangeError, StructuralGapError
from core.program import DAYS_PER_WEEK, Day, NutritionPlan, Program, Week, WorkoutBlock


@dataclass(frozen=True)
class RotationPosition:
    week_number: int  # 1-based
    day_of_week: int  # 0 = start_date's weekday
    cycle: int        # completed rotations before this date


@dataclass(frozen=True)
class ResolvedDay:
    """The concrete prescription for one calendar date."""
    program_id: str
    date: date
    week: Week
    day: Day
    workout_blocks: tuple[WorkoutBlock, ...]
    nutrition_plan: Optional[NutritionPlan]
    cycle: int = 0

    @property
    def week_number(self) -> int:
        return self.week.week_number

    @property
    def day_of_week(self) -> int:
        return self.day.day_of_week


def rotation_position(start_date: date, week_count: int, on: date) -> RotationPosition:
    """Compute week/day for ``on`` without touching program content."""
    if week_count < 1:
        raise ValueError("week_count must be >= 1")
    elapsed = (on - start_date).days
    if elapsed < 0:
        raise OutOfRangeError(f"{on.isoformat()} is before program start {start_date.isoformat()}")
    weeks_elapsed, day_of_week = divmod(elapsed, DAYS_PER_WEEK)
    cycle, absolute_week = divmod(weeks_elapsed, week_count)
    return RotationPosition(week_number=absolute_week + 1, day_of_week=day_of_week, cycle=cycle)


def resolve(program: Program, on: date) -> ResolvedDay:
    """Resolve the prescribed day of ``program`` for calendar date ``on``.

    Raises OutOfRangeError for dates before the program starts and
    StructuralGapError when the rotation lands on a missing week or day.
    """
    pos = rotation_position(program.start_date, program.week_count, on)
    week = program.week(pos.week_number)
    if week is None:
        raise StructuralGapError(f"program {program.id!r} has no week {pos.week_number}")
    day = week.day(pos.day_of_week)
    if day is None:
        raise StructuralGapError(
            f"program {program.id!r} week {pos.week_number} has no day_of_week {pos.day_of_week}"
        )
    blocks = tuple(sorted(day.blocks, key=lambda b: b.sort_order))
    return ResolvedDay(
        program_id=program.id,
        date=on,
        week=week,
        day=day,
        workout_blocks=blocks,
        nutrition_plan=program.nutrition_for(day.day_of_week),
        cycle=pos.cycle,
    )


def resolve_range(program: Program, start: date, days: int = 7) -> list[ResolvedDay]:
    """Resolve ``days`` consecutive dates starting at ``start``."""
    return [resolve(program, start + timedelta(days=offset)) for offset in range(max(0, days))]


def next_occurrence(program: Program, day_id: str, on_or_after: date) -> date:
    """Return the first date >= ``on_or_after`` on which ``day_id`` is prescribed."""
    located = program.find_day(day_id)
    if located is None:
        raise DayNotFoundError(f"program {program.id!r} has no day {day_id!r}")
    week_number, day = located
    anchor = max(on_or_after, program.start_date)
    pos = rotation_position(program.start_date, program.week_count, anchor)
    current_index = (pos.week_number - 1) * DAYS_PER_WEEK + pos.day_of_week
    target_index = (week_number - 1) * DAYS_PER_WEEK + day.day_of_week
    period = program.week_count * DAYS_PER_WEEK
    return anchor + timedelta(days=(target_index - current_index) % period)


def validate_workout_log(program: Program, day_id: str, workout_date: date) -> ResolvedDay:
    """Check that ``day_id`` is the day prescribed on ``workout_date``.

    Returns the resolved day on success; raises DayMismatchError otherwise.
    """
    resolved = resolve(program, workout_date)
    if resolved.day.id != day_id:
        raise DayMismatchError(
            f"day {day_id!r} is not prescribed on {workout_date.isoformat()} "
            f"(expected {resolved.day.id!r}, week {resolved.week_number})"
        )
    return resolved
