"""Contract tests run against both the in-memory and SQLAlchemy log stores."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from core.db import build_engine, init_db
from core.errors import (
    InvalidSetSequenceError,
    NotFoundError,
    WorkoutLogFinalizedError,
    WorkoutLogNotFoundError,
    WorkoutLogOwnershipError,
)
from core.services.log_store import InMemoryLogStore, SetLog, naive_utc, validate_set_sequence
from core.services.sql_log_store import SqlLogStore


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryLogStore()
    engine = build_engine("sqlite://")
    init_db(engine)
    return SqlLogStore(sessionmaker(bind=engine, expire_on_commit=False))


def _log_session(store, user_id, day_id, day, rpes, exercise_id="back-squat", hour=18, complete=True, overall_rpe=None):
    log = store.start_workout_log(user_id, day_id, day, started_at=datetime.combine(day, datetime.min.time()).replace(hour=hour))
    entry = store.add_exercise_log(user_id, log.id, exercise_id)
    for n, rpe in enumerate(rpes, start=1):
        store.append_set_log(user_id, entry.id, SetLog(set_number=n, weight=60, reps=8, rpe=rpe))
    if complete:
        store.complete_workout_log(user_id, log.id, overall_rpe=overall_rpe)
    return log


def test_start_is_idempotent_per_user_day_date(store):
    a = store.start_workout_log(1, "w1d0", date(2026, 1, 5))
    b = store.start_workout_log(1, "w1d0", date(2026, 1, 5))
    c = store.start_workout_log(2, "w1d0", date(2026, 1, 5))
    assert a.id == b.id
    assert c.id != a.id


def test_get_workout_log_round_trip(store):
    _log_session(store, 1, "w1d0", date(2026, 1, 5), [6, 7], overall_rpe=7)
    log = store.get_workout_log(1, "w1d0", date(2026, 1, 5))
    assert log.is_finalized
    assert log.overall_rpe == 7
    assert [s.set_number for s in log.exercise_logs[0].set_logs] == [1, 2]


def test_get_workout_log_not_found(store):
    with pytest.raises(WorkoutLogNotFoundError):
        store.get_workout_log(1, "w1d0", date(2026, 1, 5))


def test_history_most_recent_first_and_completed_only(store):
    _log_session(store, 1, "w1d0", date(2026, 1, 5), [6])
    _log_session(store, 1, "w2d0", date(2026, 1, 12), [7, 7.5])
    _log_session(store, 1, "w3d0", date(2026, 1, 19), [8], complete=False)
    history = store.history_for_exercise(1, "back-squat")
    assert [r.workout_date for r in history] == [date(2026, 1, 12), date(2026, 1, 12), date(2026, 1, 5)]
    assert [r.set_log.set_number for r in history] == [1, 2, 1]


def test_history_ties_broken_by_started_at(store):
    morning = _log_session(store, 1, "a", date(2026, 1, 12), [6], hour=7)
    evening = _log_session(store, 1, "b", date(2026, 1, 12), [7], hour=19)
    ids = [r.workout_log_id for r in store.history_for_exercise(1, "back-squat")]
    assert ids == [evening.id, morning.id]


def test_history_limit_counts_sessions(store):
    for week, day in enumerate([date(2026, 1, 5), date(2026, 1, 12), date(2026, 1, 19)], start=1):
        _log_session(store, 1, f"w{week}d0", day, [6, 6, 6])
    history = store.history_for_exercise(1, "back-squat", limit=2)
    assert len(history) == 6
    assert {r.workout_date for r in history} == {date(2026, 1, 19), date(2026, 1, 12)}


def test_history_is_per_user_and_exercise(store):
    _log_session(store, 1, "w1d0", date(2026, 1, 5), [6])
    _log_session(store, 2, "w1d0", date(2026, 1, 5), [9])
    _log_session(store, 1, "w1d1", date(2026, 1, 6), [6], exercise_id="bench-press")
    history = store.history_for_exercise(1, "back-squat")
    assert len(history) == 1
    assert history[0].set_log.rpe == 6


def test_history_is_restartable(store):
    _log_session(store, 1, "w1d0", date(2026, 1, 5), [6])
    assert store.history_for_exercise(1, "back-squat") == store.history_for_exercise(1, "back-squat")


def test_set_number_gap_rejected(store):
    log = store.start_workout_log(1, "w1d0", date(2026, 1, 5))
    entry = store.add_exercise_log(1, log.id, "back-squat")
    store.append_set_log(1, entry.id, SetLog(set_number=1, reps=8))
    with pytest.raises(InvalidSetSequenceError):
        store.append_set_log(1, entry.id, SetLog(set_number=3, reps=8))


def test_first_set_must_be_one(store):
    log = store.start_workout_log(1, "w1d0", date(2026, 1, 5))
    entry = store.add_exercise_log(1, log.id, "back-squat")
    with pytest.raises(InvalidSetSequenceError):
        store.append_set_log(1, entry.id, SetLog(set_number=2, reps=8))


def test_client_id_makes_append_idempotent(store):
    log = store.start_workout_log(1, "w1d0", date(2026, 1, 5))
    entry = store.add_exercise_log(1, log.id, "back-squat")
    first = store.append_set_log(1, entry.id, SetLog(set_number=1, reps=8, client_id="abc"))
    again = store.append_set_log(1, entry.id, SetLog(set_number=1, reps=8, client_id="abc"))
    assert first == again
    assert len(store.get_workout_log(1, "w1d0", date(2026, 1, 5)).exercise_logs[0].set_logs) == 1


def test_finalized_log_is_read_only(store):
    log = _log_session(store, 1, "w1d0", date(2026, 1, 5), [6])
    entry_id = store.get_workout_log(1, "w1d0", date(2026, 1, 5)).exercise_logs[0].id
    with pytest.raises(WorkoutLogFinalizedError):
        store.append_set_log(1, entry_id, SetLog(set_number=2, reps=8))
    with pytest.raises(WorkoutLogFinalizedError):
        store.add_exercise_log(1, log.id, "plank")
    with pytest.raises(WorkoutLogFinalizedError):
        store.complete_workout_log(1, log.id)


def test_other_users_cannot_write(store):
    log = store.start_workout_log(1, "w1d0", date(2026, 1, 5))
    with pytest.raises(WorkoutLogOwnershipError):
        store.add_exercise_log(2, log.id, "back-squat")


def test_unknown_exercise_log(store):
    with pytest.raises(NotFoundError):
        store.append_set_log(1, 999, SetLog(set_number=1, reps=1))


def test_validate_set_sequence():
    validate_set_sequence([1, 2, 3])
    validate_set_sequence([])
    with pytest.raises(InvalidSetSequenceError):
        validate_set_sequence([1, 1])
    with pytest.raises(InvalidSetSequenceError):
        validate_set_sequence([2])


def test_memory_history_orders_aware_and_default_start_times():
    store = InMemoryLogStore()
    day = date(2026, 1, 12)
    aware = store.start_workout_log(1, "w2d0", day, started_at=datetime(2000, 1, 1, tzinfo=timezone.utc))
    naive = store.start_workout_log(1, "w2d1", day)
    for log in (aware, naive):
        entry = store.add_exercise_log(1, log.id, "back-squat")
        store.append_set_log(1, entry.id, SetLog(set_number=1, weight=60, reps=8, rpe=7))
        store.complete_workout_log(1, log.id)
    history = store.history_for_exercise(1, "back-squat")
    assert [r.workout_log_id for r in history] == [naive.id, aware.id]


def test_naive_utc():
    assert naive_utc(None) is None
    assert naive_utc(datetime(2026, 1, 5, 9)) == datetime(2026, 1, 5, 9)
    assert naive_utc(datetime(2026, 1, 5, 9, tzinfo=timezone.utc)) == datetime(2026, 1, 5, 9)
