"""Progression engine: suggest the next prescription from logged RPE history.

Sessions are grouped by parent workout log. The most recent N sessions
containing the exercise are rated by the hardest completed set (falling back
to the workout's overall RPE) and compared against two thresholds:

- fewer than N sessions          -> insufficient_data (keep baseline)
- every session below the hold   -> increase by the exercise's increment
- any session at/above ceiling   -> decrease, never increase
- otherwise                      -> hold

Suggestions are advisory. Malformed history degrades to a hold with a
``Degraded-Data`` rationale instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging
from typing import Optional, Sequence

from core.config import Settings, get_settings
from core.errors import DegradedDataError, InvalidSetSequenceError
from core.logging_config import log_context
from core.program import AXIS_DURATION, AXIS_LOAD, AXIS_REPS, Exercise
from core.services.log_store import SetLogRecord, naive_utc, validate_set_sequence
from core.services.prescription import Prescription, with_baseline

logger = logging.getLogger(__name__)

INCREASE = "increase"
DECREASE = "decrease"
HOLD = "hold"
INSUFFICIENT_DATA = "insufficient_data"

DEGRADED_DATA = "Degraded-Data"
AXIS_UNITS = {AXIS_LOAD: "kg", AXIS_REPS: "reps", AXIS_DURATION: "sec"}
RPE_MIN, RPE_MAX = 0.0, 10.0


@dataclass(frozen=True)
class ProgressionConfig:
    """Tunable thresholds for the engine."""
    rpe_hold_threshold: float = 8.0
    rpe_regression_ceiling: float = 9.5
    sessions_considered: int = 2
    load_increment: float = 2.5
    rep_increment: int = 1
    duration_increment_sec: int = 5

    def __post_init__(self):
        if self.sessions_considered < 1:
            raise ValueError("sessions_considered must be >= 1")
        if self.rpe_hold_threshold >= self.rpe_regression_ceiling:
            raise ValueError("rpe_hold_threshold must be below rpe_regression_ceiling")
        if min(self.load_increment, self.rep_increment, self.duration_increment_sec) <= 0:
            raise ValueError("increments must be positive")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ProgressionConfig":
        s = settings or get_settings()
        return cls(
            rpe_hold_threshold=s.rpe_hold_threshold,
            rpe_regression_ceiling=s.rpe_regression_ceiling,
            sessions_considered=s.sessions_considered,
            load_increment=s.load_increment,
            rep_increment=s.rep_increment,
            duration_increment_sec=s.duration_increment_sec,
        )

    def increment_for(self, axis: str) -> float:
        if axis == AXIS_REPS:
            return float(self.rep_increment)
        if axis == AXIS_DURATION:
            return float(self.duration_increment_sec)
        return float(self.load_increment)


@dataclass(frozen=True)
class Session:
    """All history sets of one exercise within one completed workout."""
    workout_log_id: int
    workout_date: date
    records: tuple[SetLogRecord, ...]

    @property
    def overall_rpe(self) -> Optional[float]:
        return self.records[0].overall_rpe if self.records else None


@dataclass(frozen=True)
class SessionRating:
    workout_log_id: int
    workout_date: date
    rpe: float
    source: str  # "set" | "overall"


@dataclass(frozen=True)
class ProgressionSuggestion:
    exercise_id: str
    user_id: int
    action: str
    delta: float
    unit: str
    rationale: str
    sessions: tuple[SessionRating, ...] = ()
    baseline: Optional[float] = None
    suggested: Optional[float] = None

    @property
    def is_degraded(self) -> bool:
        return self.rationale.startswith(DEGRADED_DATA)


def group_sessions(history: Sequence[SetLogRecord]) -> list[Session]:
    """Group consecutive history records by workout log, keeping order."""
    sessions: list[Session] = []
    current: list[SetLogRecord] = []
    seen: set[int] = set()
    for record in history:
        if current and record.workout_log_id != current[0].workout_log_id:
            sessions.append(Session(current[0].workout_log_id, current[0].workout_date, tuple(current)))
            current = []
        if not current:
            if record.workout_log_id in seen:
                raise DegradedDataError(f"workout log {record.workout_log_id} appears in non-contiguous history")
            seen.add(record.workout_log_id)
        current.append(record)
    if current:
        sessions.append(Session(current[0].workout_log_id, current[0].workout_date, tuple(current)))
    return sessions


def check_history_order(sessions: Sequence[Session]) -> None:
    """Dates must be non-increasing, ties broken by started_at descending."""
    for session in sessions:
        if session.records[0].started_at is None:
            raise DegradedDataError(f"workout log {session.workout_log_id} has no started_at")
    for newer, older in zip(sessions, sessions[1:]):
        newer_key = (newer.workout_date, naive_utc(newer.records[0].started_at))
        older_key = (older.workout_date, naive_utc(older.records[0].started_at))
        if older_key > newer_key:
            raise DegradedDataError(
                f"history not most-recent-first: {older.workout_date.isoformat()} "
                f"follows {newer.workout_date.isoformat()}"
            )


def rate_session(session: Session) -> SessionRating:
    """Hardest completed set RPE, else the workout's overall RPE."""
    by_exercise_log: dict[int, list[int]] = {}
    for r in session.records:
        by_exercise_log.setdefault(r.exercise_log_id, []).append(r.set_log.set_number)
    try:
        for numbers in by_exercise_log.values():
            validate_set_sequence(numbers)
    except InvalidSetSequenceError as exc:
        raise DegradedDataError(f"workout log {session.workout_log_id}: {exc}") from exc

    set_rpes = [r.set_log.rpe for r in session.records if r.set_log.completed and r.set_log.rpe is not None]
    if set_rpes:
        rpe, source = max(set_rpes), "set"
    elif session.overall_rpe is not None:
        rpe, source = session.overall_rpe, "overall"
    else:
        raise DegradedDataError(f"workout log {session.workout_log_id} has no RPE recorded")
    if not RPE_MIN <= rpe <= RPE_MAX:
        raise DegradedDataError(f"workout log {session.workout_log_id} has RPE {rpe} outside 0-10")
    return SessionRating(session.workout_log_id, session.workout_date, float(rpe), source)


def baseline_from_history(
    prescription: Optional[Prescription], sessions: Sequence[Session], axis: str = AXIS_LOAD
) -> Optional[float]:
    """Value the next delta applies to; falls back to the best set of the newest session."""
    if not sessions:
        return None
    completed = [r.set_log for r in sessions[0].records if r.set_log.completed]
    weights = [s.weight for s in completed if s.weight is not None]
    reps = [s.reps for s in completed if s.reps is not None]
    durations = [s.duration_sec for s in completed if s.duration_sec is not None]
    filled = with_baseline(
        prescription or Prescription(raw="", axis=axis),
        load_kg=max(weights) if weights else None,
        reps=max(reps) if reps else None,
        duration_sec=max(durations) if durations else None,
    )
    value = {AXIS_LOAD: filled.load_kg, AXIS_REPS: filled.reps}.get(axis, filled.duration_sec)
    return float(value) if value is not None else None


def _describe(ratings: Sequence[SessionRating]) -> str:
    return ", ".join(
        f"{r.workout_date.isoformat()} (log {r.workout_log_id}, RPE {r.rpe:g} from {r.source})" for r in ratings
    )


def suggest(
    user_id: int,
    exercise: Exercise,
    current_prescription: Optional[Prescription],
    history: Sequence[SetLogRecord],
    config: Optional[ProgressionConfig] = None,
) -> ProgressionSuggestion:
    """Propose the next prescription for ``exercise`` from completed history.

    ``history`` must already be ordered most recent first (see
    ``PerformanceLogStore.history_for_exercise``). Never raises for bad
    history; returns a hold with a Degraded-Data rationale instead.
    """
    cfg = config or ProgressionConfig.from_settings()
    axis = exercise.progression_axis
    unit = AXIS_UNITS.get(axis, AXIS_UNITS[AXIS_LOAD])
    needed = cfg.sessions_considered

    def _result(action: str, rationale: str, delta: float = 0.0, ratings=(), baseline=None) -> ProgressionSuggestion:
        suggested = None
        if baseline is not None:
            suggested = max(0.0, round(baseline + delta, 2))
        suggestion = ProgressionSuggestion(
            exercise_id=exercise.id,
            user_id=user_id,
            action=action,
            delta=delta,
            unit=unit,
            rationale=rationale,
            sessions=tuple(ratings),
            baseline=baseline,
            suggested=suggested,
        )
        logger.info(
            "progression_suggested",
            extra=log_context(user_id=user_id, exercise_id=exercise.id, action=action, delta=delta),
        )
        return suggestion

    available = len({r.workout_log_id for r in history})
    if available < needed:
        return _result(
            INSUFFICIENT_DATA,
            f"Insufficient-Data: {available} of {needed} completed sessions logged; "
            "keep the curriculum baseline unchanged",
        )

    try:
        sessions = group_sessions(history)
        check_history_order(sessions)
        considered = sessions[:needed]
        ratings = [rate_session(s) for s in considered]
    except (DegradedDataError, TypeError, ValueError) as exc:
        logger.warning(
            "progression_degraded_history",
            extra=log_context(user_id=user_id, exercise_id=exercise.id, reason=str(exc)),
        )
        return _result(HOLD, f"{DEGRADED_DATA}: {exc}; holding current prescription")

    baseline = baseline_from_history(current_prescription, considered, axis)
    increment = cfg.increment_for(axis)
    if axis == AXIS_LOAD and current_prescription is not None and current_prescription.load_delta_kg:
        # "+5kg from last session" sets the step size for this exercise.
        increment = abs(current_prescription.load_delta_kg)
    summary = _describe(ratings)

    if any(r.rpe >= cfg.rpe_regression_ceiling for r in ratings):
        delta = -increment
        if baseline is not None and baseline + delta < 0:
            delta = -baseline if baseline else 0.0
        return _result(
            DECREASE,
            f"Decrease: {summary}; at least one session reached RPE {cfg.rpe_regression_ceiling:g}",
            delta=delta,
            ratings=ratings,
            baseline=baseline,
        )
    if all(r.rpe < cfg.rpe_hold_threshold for r in ratings):
        return _result(
            INCREASE,
            f"Increase: {summary}; all below RPE {cfg.rpe_hold_threshold:g}",
            delta=increment,
            ratings=ratings,
            baseline=baseline,
        )
    return _result(
        HOLD,
        f"Hold: {summary}; effort between RPE {cfg.rpe_hold_threshold:g} and {cfg.rpe_regression_ceiling:g}",
        ratings=ratings,
        baseline=baseline,
    )
