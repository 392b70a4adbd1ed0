"""Tests for configuration module."""

from __future__ import annotations

import pytest

from core.config import _ENV_PROFILES, Settings, get_database_url, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_defaults():
    s = Settings(database_url="sqlite://")
    assert s.app_env == "dev"
    assert s.rpe_hold_threshold == 8.0
    assert s.rpe_regression_ceiling == 9.5
    assert s.sessions_considered == 2
    assert s.load_increment == 2.5


def test_settings_frozen():
    s = Settings(database_url="x")
    with pytest.raises(AttributeError):
        s.database_url = "y"


def test_settings_env_flags():
    assert Settings(database_url="x", app_env="production").is_production
    assert Settings(database_url="x").is_dev


def test_get_database_url_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://from-env/db")
    assert get_database_url() == "postgresql://from-env/db"


def test_get_database_url_default(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert get_database_url().startswith("sqlite")


def test_progression_thresholds_from_env(monkeypatch):
    monkeypatch.setenv("RPE_HOLD_THRESHOLD", "7.5")
    monkeypatch.setenv("RPE_REGRESSION_CEILING", "9")
    monkeypatch.setenv("SESSIONS_CONSIDERED", "3")
    monkeypatch.setenv("LOAD_INCREMENT", "5")
    s = get_settings()
    assert s.rpe_hold_threshold == 7.5
    assert s.rpe_regression_ceiling == 9.0
    assert s.sessions_considered == 3
    assert s.load_increment == 5.0


def test_settings_are_cached(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    first = get_settings()
    monkeypatch.setenv("APP_ENV", "production")
    assert get_settings() is first


def test_profile_log_levels(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("APP_ENV", "production")
    assert get_settings().log_level == "WARNING"
    assert _ENV_PROFILES["dev"]["log_level"] == "DEBUG"


def test_unknown_env_falls_back_to_dev_profile(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("APP_ENV", "qa")
    assert get_settings().log_level == "DEBUG"
