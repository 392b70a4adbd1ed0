"""Build immutable Program snapshots from nested literal curriculum data.

Curriculum is authored as plain dicts/lists (see ``db/curriculum.py``) and
converted once at load time. List position becomes ``sort_order`` unless the
entry sets one explicitly.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Any

from core.errors import StructuralError
from core.logging_config import log_context
from core.program import (
    AXIS_LOAD,
    Alternative,
    Day,
    Exercise,
    Meal,
    NutritionPlan,
    Program,
    Recipe,
    Snack,
    Tip,
    Week,
    WorkoutBlock,
    validate_program,
)

logger = logging.getLogger(__name__)


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise StructuralError(f"{where}: missing required field {key!r}") from None


def _as_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise StructuralError(f"invalid start_date {value!r}") from None


def _exercise(raw: dict[str, Any], idx: int, where: str) -> Exercise:
    return Exercise(
        id=str(_require(raw, "id", where)),
        name=_require(raw, "name", where),
        prescription=raw.get("prescription", ""),
        progression_axis=raw.get("progression_axis", AXIS_LOAD),
        sort_order=raw.get("sort_order", idx),
        notes=raw.get("notes", ""),
    )


def _block(raw: dict[str, Any], idx: int, where: str) -> WorkoutBlock:
    block_id = str(_require(raw, "id", where))
    exercises = sorted(
        (_exercise(e, i, f"{where} block {block_id}") for i, e in enumerate(raw.get("exercises", []))),
        key=lambda e: e.sort_order,
    )
    return WorkoutBlock(
        id=block_id,
        title=raw.get("title", ""),
        sort_order=raw.get("sort_order", idx),
        exercises=tuple(exercises),
    )


def _tip(raw: Any, idx: int) -> Tip:
    if isinstance(raw, str):
        return Tip(text=raw, sort_order=idx)
    return Tip(text=raw["text"], sort_order=raw.get("sort_order", idx))


def _day(raw: dict[str, Any], where: str) -> Day:
    day_id = str(_require(raw, "id", where))
    where = f"{where} day {day_id}"
    blocks = sorted((_block(b, i, where) for i, b in enumerate(raw.get("blocks", []))), key=lambda b: b.sort_order)
    tips = sorted((_tip(t, i) for i, t in enumerate(raw.get("tips", []))), key=lambda t: t.sort_order)
    return Day(
        id=day_id,
        day_of_week=int(_require(raw, "day_of_week", where)),
        type=raw.get("type", "rest"),
        title=raw.get("title", ""),
        duration=raw.get("duration", ""),
        diet_type=raw.get("diet_type", ""),
        blocks=tuple(blocks),
        tips=tuple(tips),
    )


def _meal(raw: dict[str, Any], idx: int) -> Meal:
    recipe = None
    if raw.get("recipe"):
        r = raw["recipe"]
        recipe = Recipe(
            ingredients=tuple(r.get("ingredients", [])),
            instructions=tuple(r.get("instructions", [])),
            prep_minutes=r.get("prep_minutes"),
        )
    alternatives = tuple(
        Alternative(name=a["name"], description=a.get("description", ""), sort_order=a.get("sort_order", i))
        for i, a in enumerate(raw.get("alternatives", []))
    )
    return Meal(
        name=raw["name"],
        meal_type=raw.get("meal_type", ""),
        description=raw.get("description", ""),
        time=raw.get("time", ""),
        sort_order=raw.get("sort_order", idx),
        recipe=recipe,
        alternatives=tuple(sorted(alternatives, key=lambda a: a.sort_order)),
    )


def _nutrition(raw: dict[str, Any]) -> NutritionPlan:
    meals = sorted((_meal(m, i) for i, m in enumerate(raw.get("meals", []))), key=lambda m: m.sort_order)
    snacks = sorted(
        (
            Snack(name=s["name"], description=s.get("description", ""), sort_order=s.get("sort_order", i))
            for i, s in enumerate(raw.get("snacks", []))
        ),
        key=lambda s: s.sort_order,
    )
    return NutritionPlan(
        day_of_week=int(_require(raw, "day_of_week", "nutrition plan")),
        diet_type=raw.get("diet_type", ""),
        calories=raw.get("calories"),
        meals=tuple(meals),
        snacks=tuple(snacks),
    )


def load_program(data: dict[str, Any]) -> Program:
    """Convert curriculum literal data into a validated Program snapshot.

    Raises StructuralError when required fields are missing or the week/day
    grid is incomplete.
    """
    program_id = str(_require(data, "id", "program"))
    weeks = []
    for raw_week in data.get("weeks", []):
        week_number = int(_require(raw_week, "week_number", f"program {program_id}"))
        where = f"program {program_id} week {week_number}"
        days = sorted((_day(d, where) for d in raw_week.get("days", [])), key=lambda d: d.day_of_week)
        weeks.append(Week(week_number=week_number, days=tuple(days), title=raw_week.get("title", "")))

    program = Program(
        id=program_id,
        name=_require(data, "name", f"program {program_id}"),
        start_date=_as_date(_require(data, "start_date", f"program {program_id}")),
        week_count=int(_require(data, "week_count", f"program {program_id}")),
        is_default=bool(data.get("is_default", False)),
        weeks=tuple(sorted(weeks, key=lambda w: w.week_number)),
        nutrition_plans=tuple(sorted((_nutrition(n) for n in data.get("nutrition", [])), key=lambda n: n.day_of_week)),
        description=data.get("description", ""),
    )
    validate_program(program)
    logger.info(
        "program_loaded",
        extra=log_context(program_id=program.id, week_count=program.week_count, days=sum(len(w.days) for w in program.weeks)),
    )
    return program
