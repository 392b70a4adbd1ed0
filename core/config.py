"""Application configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"

    # Progression thresholds (tunable per environment)
    rpe_hold_threshold: float = 8.0
    rpe_regression_ceiling: float = 9.5
    sessions_considered: int = 2
    load_increment: float = 2.5
    rep_increment: int = 1
    duration_increment_sec: int = 5

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
    },
    "staging": {
        "log_level": "INFO",
    },
    "production": {
        "log_level": "WARNING",
    },
}


def get_database_url() -> str:
    """Resolve database URL from the DATABASE_URL env var, else a local SQLite file."""
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "sqlite:///./curriculum.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        rpe_hold_threshold=float(os.getenv("RPE_HOLD_THRESHOLD", "8")),
        rpe_regression_ceiling=float(os.getenv("RPE_REGRESSION_CEILING", "9.5")),
        sessions_considered=int(os.getenv("SESSIONS_CONSIDERED", "2")),
        load_increment=float(os.getenv("LOAD_INCREMENT", "2.5")),
        rep_increment=int(os.getenv("REP_INCREMENT", "1")),
        duration_increment_sec=int(os.getenv("DURATION_INCREMENT_SEC", "5")),
    )
