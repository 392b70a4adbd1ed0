"""Default curriculum: a 4-week strength + conditioning rotation.

Kept as literal data so editors can change it without touching code. Each
week reuses the same day layout; the per-week tables below carry the
prescriptions that change as the rotation advances.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any

PROGRAM_ID = "foundations-4wk"
START_DATE = "2026-01-05"  # a Monday
WEEK_COUNT = 4

# Prescriptions per exercise for weeks 1..4.
WEEKLY_PRESCRIPTIONS: dict[str, list[str]] = {
    "back-squat": ["3x8 @ moderate", "3x8, +2.5kg from last session", "4x6 @ moderate-heavy", "2x8 @ light"],
    "romanian-deadlift": ["3x10 @ moderate", "3x10, +2.5kg from last session", "4x8 @ moderate", "2x10 @ light"],
    "push-up": ["3x10", "3x12", "4x12", "2x10"],
    "bench-press": ["3x8 @ moderate", "3x8, +2.5kg from last session", "4x6 @ moderate-heavy", "2x8 @ light"],
    "bent-over-row": ["3x10 @ moderate", "3x10, +2.5kg from last session", "4x8 @ moderate", "2x10 @ light"],
    "plank": ["3 x 30s", "3 x 40s", "3 x 45s", "2 x 30s"],
    "deadlift": ["3x5 @ moderate", "3x5, +2.5kg from last session", "5x3 @ heavy", "2x5 @ light"],
    "overhead-press": ["3x8 @ moderate", "3x8, +2.5kg from last session", "4x6 @ moderate", "2x8 @ light"],
    "pull-up": ["3x5", "3x6", "4x6", "2x5"],
    "bike-intervals": ["6 x 30s", "8 x 30s", "8 x 40s", "4 x 30s"],
}

EXERCISES: dict[str, dict[str, Any]] = {
    "back-squat": {"name": "Back Squat", "progression_axis": "load"},
    "romanian-deadlift": {"name": "Romanian Deadlift", "progression_axis": "load"},
    "push-up": {"name": "Push-up", "progression_axis": "reps"},
    "bench-press": {"name": "Bench Press", "progression_axis": "load"},
    "bent-over-row": {"name": "Bent-over Row", "progression_axis": "load"},
    "plank": {"name": "Plank", "progression_axis": "duration"},
    "deadlift": {"name": "Deadlift", "progression_axis": "load"},
    "overhead-press": {"name": "Overhead Press", "progression_axis": "load"},
    "pull-up": {"name": "Pull-up", "progression_axis": "reps"},
    "bike-intervals": {"name": "Bike Intervals", "progression_axis": "duration"},
}

# day_of_week -> day layout; blocks list exercise ids in order.
DAY_LAYOUT: dict[int, dict[str, Any]] = {
    0: {
        "type": "strength",
        "title": "Lower Body A",
        "duration": "50 min",
        "diet_type": "training",
        "blocks": [("Main Lifts", ["back-squat", "romanian-deadlift"]), ("Core", ["plank"])],
        "tips": ["Warm up with 5 minutes of easy cycling.", "Leave one or two reps in reserve."],
    },
    1: {
        "type": "strength",
        "title": "Upper Body A",
        "duration": "45 min",
        "diet_type": "training",
        "blocks": [("Press & Pull", ["bench-press", "bent-over-row"]), ("Accessory", ["push-up"])],
        "tips": ["Control the lowering phase."],
    },
    2: {
        "type": "cardio",
        "title": "Conditioning",
        "duration": "30 min",
        "diet_type": "light",
        "blocks": [("Intervals", ["bike-intervals"])],
        "tips": ["Easy spin between intervals."],
    },
    3: {"type": "rest", "title": "Rest & Mobility", "duration": "", "diet_type": "rest", "blocks": [], "tips": ["Walk 20-30 minutes."]},
    4: {
        "type": "strength",
        "title": "Full Body B",
        "duration": "55 min",
        "diet_type": "training",
        "blocks": [("Main Lifts", ["deadlift", "overhead-press"]), ("Accessory", ["pull-up", "plank"])],
        "tips": ["Brace before every deadlift rep."],
    },
    5: {
        "type": "cardio",
        "title": "Long Easy Session",
        "duration": "40 min",
        "diet_type": "light",
        "blocks": [("Intervals", ["bike-intervals"])],
        "tips": [],
    },
    6: {"type": "rest", "title": "Rest", "duration": "", "diet_type": "rest", "blocks": [], "tips": ["Plan next week's meals."]},
}

NUTRITION: list[dict[str, Any]] = [
    {
        "day_of_week": dow,
        "diet_type": DAY_LAYOUT[dow]["diet_type"],
        "calories": {"training": 2600, "light": 2300, "rest": 2100}[DAY_LAYOUT[dow]["diet_type"]],
        "meals": [
            {
                "name": "Oats with berries",
                "meal_type": "breakfast",
                "time": "07:30",
                "recipe": {
                    "ingredients": ["80g oats", "250ml milk", "100g berries"],
                    "instructions": ["Simmer oats in milk for 5 minutes.", "Top with berries."],
                    "prep_minutes": 10,
                },
                "alternatives": [{"name": "Greek yogurt bowl", "description": "Yogurt, honey, granola"}],
            },
            {
                "name": "Chicken rice bowl" if DAY_LAYOUT[dow]["diet_type"] == "training" else "Lentil salad",
                "meal_type": "lunch",
                "time": "12:30",
                "alternatives": [{"name": "Tuna wrap"}],
            },
            {
                "name": "Salmon, potatoes and greens",
                "meal_type": "dinner",
                "time": "19:00",
                "recipe": {
                    "ingredients": ["150g salmon", "200g potatoes", "broccoli"],
                    "instructions": ["Roast potatoes 30 minutes.", "Bake salmon 12 minutes.", "Steam broccoli."],
                    "prep_minutes": 40,
                },
            },
        ],
        "snacks": [{"name": "Apple and almonds"}, {"name": "Protein shake", "description": "Post-workout"}],
    }
    for dow in range(7)
]


def _day(week_number: int, dow: int) -> dict[str, Any]:
    layout = DAY_LAYOUT[dow]
    blocks = []
    for b_idx, (title, exercise_ids) in enumerate(layout["blocks"]):
        blocks.append(
            {
                "id": f"w{week_number}d{dow}b{b_idx}",
                "title": title,
                "exercises": [
                    {"id": ex_id, **EXERCISES[ex_id], "prescription": WEEKLY_PRESCRIPTIONS[ex_id][week_number - 1]}
                    for ex_id in exercise_ids
                ],
            }
        )
    return {
        "id": f"w{week_number}d{dow}",
        "day_of_week": dow,
        "type": layout["type"],
        "title": layout["title"],
        "duration": layout["duration"],
        "diet_type": layout["diet_type"],
        "blocks": blocks,
        "tips": list(layout["tips"]),
    }


def default_program_data() -> dict[str, Any]:
    """Literal data for the default program, ready for ``load_program``."""
    return {
        "id": PROGRAM_ID,
        "name": "Foundations (4-week rotation)",
        "description": "Three strength days, two conditioning days, two rest days.",
        "start_date": START_DATE,
        "week_count": WEEK_COUNT,
        "is_default": True,
        "weeks": [
            {"week_number": wk, "title": ["Build", "Load", "Peak", "Deload"][wk - 1], "days": [_day(wk, d) for d in range(7)]}
            for wk in range(1, WEEK_COUNT + 1)
        ],
        "nutrition": deepcopy(NUTRITION),
    }
