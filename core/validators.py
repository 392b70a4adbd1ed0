"""Pydantic validation models for the workout logging write path."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from core.services.log_store import SetLog


class SetLogInput(BaseModel):
    set_number: int = Field(ge=1)
    weight: Optional[float] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    duration_sec: Optional[int] = Field(default=None, ge=0)
    rpe: Optional[float] = Field(default=None, ge=1, le=10)
    completed: bool = True
    notes: str = Field(default="", max_length=1000)
    client_id: Optional[str] = Field(default=None, max_length=64)

    @model_validator(mode="after")
    def has_a_measure(self):
        if self.completed and self.reps is None and self.duration_sec is None:
            raise ValueError("a completed set needs reps or duration_sec")
        return self

    def to_set_log(self) -> SetLog:
        return SetLog(**self.model_dump())


class ExerciseLogInput(BaseModel):
    exercise_id: str = Field(min_length=1, max_length=80)
    sets: list[SetLogInput] = Field(default_factory=list)

    @field_validator("sets")
    @classmethod
    def sets_numbered_in_order(cls, v):
        numbers = [s.set_number for s in v]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(f"set numbers must run 1..{len(numbers)} without gaps, got {numbers}")
        return v


class WorkoutStartInput(BaseModel):
    user_id: int = Field(gt=0)
    program_id: str = Field(min_length=1)
    day_id: str = Field(min_length=1)
    workout_date: date


class WorkoutCompletionInput(BaseModel):
    overall_rpe: Optional[float] = Field(default=None, ge=1, le=10)
    notes: str = Field(default="", max_length=2000)
