"""
Configuration loaded from the environment (and a .env file if present).

Variables:
    DATABASE_URL               SQLAlchemy URL (default: sqlite:///hanway.db)
    TEST_MODE                  "true" switches to an in-memory SQLite database
    HANWAY_REQUEST_RETENTION   Target retrievability (default: 0.9)
    HANWAY_MAXIMUM_INTERVAL    Longest interval in days (default: 36500)
    HANWAY_ENABLE_FUZZ         "false" disables due-date fuzz (default: true)
    DEFAULT_USER_ID            Owner recorded on new words (default: unset)
    LOG_LEVEL                  Logging level name (default: INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

from hanway.fsrs.constants import FSRS_6_PARAMETERS, SchedulerParameters

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///hanway.db"
TEST_DATABASE_URL = "sqlite:///:memory:"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    test_mode: bool = False
    request_retention: float = FSRS_6_PARAMETERS.request_retention
    maximum_interval: int = FSRS_6_PARAMETERS.maximum_interval
    enable_fuzz: bool = True
    default_user_id: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: if a numeric variable cannot be parsed
        """
        test_mode = _env_flag("TEST_MODE", False)
        database_url = TEST_DATABASE_URL if test_mode else os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return cls(
            database_url=database_url,
            test_mode=test_mode,
            request_retention=_env_number(
                "HANWAY_REQUEST_RETENTION", float, FSRS_6_PARAMETERS.request_retention
            ),
            maximum_interval=_env_number(
                "HANWAY_MAXIMUM_INTERVAL", int, FSRS_6_PARAMETERS.maximum_interval
            ),
            enable_fuzz=_env_flag("HANWAY_ENABLE_FUZZ", True),
            default_user_id=os.getenv("DEFAULT_USER_ID") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def scheduler_parameters(self) -> SchedulerParameters:
        """Default parameter table with the configurable knobs applied."""
        return replace(
            FSRS_6_PARAMETERS,
            request_retention=self.request_retention,
            maximum_interval=self.maximum_interval,
            enable_fuzz=self.enable_fuzz,
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once, using LOG_LEVEL unless a level is given."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, kind: type, default):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return kind(value)
    except ValueError:
        raise ValueError(f"{name} must be a {kind.__name__}, got {value!r}") from None
