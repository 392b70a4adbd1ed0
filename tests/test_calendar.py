"""Tests for calendar resolution of the program rotation."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from core.errors import DayMismatchError, DayNotFoundError, OutOfRangeError, StructuralGapError
from core.program import Day, NutritionPlan, Program, Week
from core.services.calendar import (
    next_occurrence,
    resolve,
    resolve_range,
    rotation_position,
    validate_workout_log,
)
from core.services.curriculum import load_program
from db.curriculum import default_program_data


def _program(week_count: int = 4, start: date = date(2026, 1, 5)) -> Program:
    weeks = tuple(
        Week(
            week_number=wk,
            days=tuple(Day(id=f"w{wk}d{d}", day_of_week=d, type="strength" if d % 2 == 0 else "rest") for d in range(7)),
        )
        for wk in range(1, week_count + 1)
    )
    nutrition = tuple(NutritionPlan(day_of_week=d, diet_type=f"diet-{d}") for d in range(7))
    return Program(id="p1", name="Test", start_date=start, week_count=week_count, weeks=weeks, nutrition_plans=nutrition)


def test_start_date_is_week_one_day_zero():
    resolved = resolve(_program(), date(2026, 1, 5))
    assert resolved.week_number == 1
    assert resolved.day_of_week == 0
    assert resolved.day.id == "w1d0"


def test_rotation_restarts_after_week_count():
    resolved = resolve(_program(week_count=4), date(2026, 2, 2))
    assert resolved.week_number == 1
    assert resolved.day_of_week == 0
    assert resolved.cycle == 1


@pytest.mark.parametrize("week_count", [1, 2, 3, 4, 6])
@pytest.mark.parametrize("k", [0, 1, 5, 40])
def test_week_one_every_rotation(week_count, k):
    program = _program(week_count=week_count)
    d0 = program.start_date + timedelta(days=k * 7 * week_count)
    assert resolve(program, d0).week_number == 1


def test_week_advances_every_seven_days():
    program = _program(week_count=4)
    weeks = [resolve(program, program.start_date + timedelta(days=7 * i)).week_number for i in range(9)]
    assert weeks == [1, 2, 3, 4, 1, 2, 3, 4, 1]


def test_day_of_week_is_offset_from_start_not_weekday():
    # Starting on a Wednesday still makes the start day day_of_week 0.
    program = _program(start=date(2026, 1, 7))
    assert resolve(program, date(2026, 1, 7)).day_of_week == 0
    assert resolve(program, date(2026, 1, 13)).day_of_week == 6


def test_resolve_is_deterministic():
    program = _program()
    assert resolve(program, date(2026, 3, 17)) == resolve(program, date(2026, 3, 17))


@pytest.mark.parametrize("days_before", [1, 6, 7, 365])
def test_dates_before_start_are_rejected(days_before):
    program = _program()
    with pytest.raises(OutOfRangeError):
        resolve(program, program.start_date - timedelta(days=days_before))


def test_no_upper_bound_on_dates():
    resolved = resolve(_program(), date(2040, 6, 1))
    assert 1 <= resolved.week_number <= 4


def test_nutrition_depends_only_on_day_of_week():
    program = _program()
    a = resolve(program, date(2026, 1, 6))
    b = resolve(program, date(2026, 1, 20))
    assert a.week_number != b.week_number
    assert a.day_of_week == b.day_of_week
    assert a.nutrition_plan == b.nutrition_plan
    assert a.nutrition_plan.diet_type == "diet-1"


def test_missing_nutrition_resolves_to_none():
    program = Program(id="p", name="p", start_date=date(2026, 1, 5), week_count=1, weeks=_program(1).weeks)
    assert resolve(program, date(2026, 1, 5)).nutrition_plan is None


def test_missing_week_is_structural_gap():
    program = _program(week_count=2)
    broken = Program(id="p", name="p", start_date=program.start_date, week_count=2, weeks=program.weeks[:1])
    with pytest.raises(StructuralGapError):
        resolve(broken, date(2026, 1, 12))


def test_missing_day_is_structural_gap():
    week = Week(week_number=1, days=tuple(Day(id=f"d{d}", day_of_week=d, type="rest") for d in range(6)))
    program = Program(id="p", name="p", start_date=date(2026, 1, 5), week_count=1, weeks=(week,))
    with pytest.raises(StructuralGapError):
        resolve(program, date(2026, 1, 11))


def test_rotation_position_arithmetic():
    pos = rotation_position(date(2026, 1, 5), 3, date(2026, 1, 5) + timedelta(days=7 * 7 + 2))
    assert (pos.week_number, pos.day_of_week, pos.cycle) == (2, 2, 2)


def test_rotation_position_rejects_zero_weeks():
    with pytest.raises(ValueError):
        rotation_position(date(2026, 1, 5), 0, date(2026, 1, 5))


def test_resolve_range_returns_consecutive_days():
    days = resolve_range(_program(), date(2026, 1, 8), days=7)
    assert [d.date for d in days] == [date(2026, 1, 8) + timedelta(days=i) for i in range(7)]
    assert [d.day_of_week for d in days] == [3, 4, 5, 6, 0, 1, 2]


def test_next_occurrence():
    program = _program(week_count=4)
    assert next_occurrence(program, "w1d0", date(2026, 1, 5)) == date(2026, 1, 5)
    assert next_occurrence(program, "w1d0", date(2026, 1, 6)) == date(2026, 2, 2)
    assert next_occurrence(program, "w3d4", date(2026, 1, 5)) == date(2026, 1, 23)
    # Before start: counts from start_date.
    assert next_occurrence(program, "w2d0", date(2025, 12, 1)) == date(2026, 1, 12)


def test_next_occurrence_unknown_day():
    with pytest.raises(DayNotFoundError) as exc_info:
        next_occurrence(_program(), "nope", date(2026, 1, 5))
    assert exc_info.value.http_status == 404


def test_validate_workout_log_accepts_matching_day():
    resolved = validate_workout_log(_program(), "w2d3", date(2026, 1, 15))
    assert resolved.week_number == 2


def test_validate_workout_log_rejects_wrong_day():
    with pytest.raises(DayMismatchError):
        validate_workout_log(_program(), "w1d3", date(2026, 1, 15))


def test_validate_workout_log_rejects_date_before_start():
    with pytest.raises(OutOfRangeError):
        validate_workout_log(_program(), "w1d0", date(2025, 12, 29))


def test_default_curriculum_resolution():
    program = load_program(default_program_data())
    monday = resolve(program, date(2026, 1, 5))
    assert monday.day.title == "Lower Body A"
    assert [b.title for b in monday.workout_blocks] == ["Main Lifts", "Core"]
    wednesday_wk3 = resolve(program, date(2026, 1, 21))
    assert wednesday_wk3.week_number == 3
    assert wednesday_wk3.day.type == "cardio"
    assert wednesday_wk3.nutrition_plan.diet_type == "light"
