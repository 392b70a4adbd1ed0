from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class WorkoutLogRow(Base):
    __tablename__ = "workout_logs"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    day_id: Mapped[str] = mapped_column(String(80))
    workout_date: Mapped[dt.date] = mapped_column(Date, index=True)
    started_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    overall_rpe: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str] = mapped_column(Text, default="")
    exercise_logs: Mapped[list["ExerciseLogRow"]] = relationship(
        back_populates="workout_log", order_by="ExerciseLogRow.sort_order", cascade="all, delete-orphan"
    )
    __table_args__ = (
        UniqueConstraint("user_id", "day_id", "workout_date", name="uq_workout_log_user_day_date"),
        CheckConstraint("overall_rpe is null or overall_rpe between 0 and 10"),
        Index("ix_workout_logs_user_completed", "user_id", "completed_at"),
    )


class ExerciseLogRow(Base):
    __tablename__ = "exercise_logs"
    id: Mapped[int] = mapped_column(primary_key=True)
    workout_log_id: Mapped[int] = mapped_column(ForeignKey("workout_logs.id"), index=True)
    exercise_id: Mapped[str] = mapped_column(String(80), index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    workout_log: Mapped[WorkoutLogRow] = relationship(back_populates="exercise_logs")
    set_logs: Mapped[list["SetLogRow"]] = relationship(
        back_populates="exercise_log", order_by="SetLogRow.set_number", cascade="all, delete-orphan"
    )


class SetLogRow(Base):
    __tablename__ = "set_logs"
    id: Mapped[int] = mapped_column(primary_key=True)
    exercise_log_id: Mapped[int] = mapped_column(ForeignKey("exercise_logs.id"), index=True)
    set_number: Mapped[int] = mapped_column(Integer)
    weight: Mapped[float | None] = mapped_column(Float)
    reps: Mapped[int | None] = mapped_column(Integer)
    duration_sec: Mapped[int | None] = mapped_column(Integer)
    rpe: Mapped[float | None] = mapped_column(Float)
    completed: Mapped[bool] = mapped_column(Boolean, default=True)
    notes: Mapped[str] = mapped_column(Text, default="")
    client_id: Mapped[str | None] = mapped_column(String(64))
    exercise_log: Mapped[ExerciseLogRow] = relationship(back_populates="set_logs")
    __table_args__ = (
        UniqueConstraint("exercise_log_id", "set_number", name="uq_set_log_number"),
        UniqueConstraint("exercise_log_id", "client_id", name="uq_set_log_client_id"),
        CheckConstraint("set_number >= 1"),
        CheckConstraint("rpe is null or rpe between 0 and 10"),
    )
