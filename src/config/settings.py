"""
Configuration settings for the date utilities and logging.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
at load time, so a misspelled timezone or log level fails fast with a clear
message instead of surfacing later as a wrong epoch value.

**Why centralized config?**
  - Single source of truth for the few knobs this library has.
  - Easy to test (construct settings directly instead of reading the environment).
  - Fail-fast validation (bad timezone -> clear error at load, not mid-run).

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load .env from project root (dev/local environments); real environment wins
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got: {raw}")


@dataclass(frozen=True)
class DateSettings:
    """
    Configuration for timestamp interpretation.

    **Conceptual**: Naive datetimes carry no timezone. Conversions that need an
    absolute instant (Unix epoch, RFC 1123 in GMT) must decide which zone a
    naive value lives in. The project convention is UTC; deployments whose
    inputs are local wall-clock times can override it.

    Attributes:
        naive_timezone: IANA timezone name used to localize naive timestamps
                        (default "UTC").
    """
    naive_timezone: str = "UTC"

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.naive_timezone:
            raise ValueError("LAZYDATE_NAIVE_TIMEZONE must not be empty.")
        try:
            ZoneInfo(self.naive_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"LAZYDATE_NAIVE_TIMEZONE is not a known IANA timezone: "
                f"{self.naive_timezone!r}"
            )

    @classmethod
    def from_env(cls) -> "DateSettings":
        """
        Load date settings from environment variables.

        **Environment variables**:
          - LAZYDATE_NAIVE_TIMEZONE (optional): defaults to "UTC".

        Returns:
            DateSettings object with values loaded from environment.

        Raises:
            ValueError: If the timezone is unknown.
        """
        return cls(naive_timezone=os.getenv("LAZYDATE_NAIVE_TIMEZONE", "UTC").strip())


@dataclass(frozen=True)
class LoggingSettings:
    """
    Configuration handed to ``src.utils.log.setup_logging``.

    Attributes:
        level: Standard level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Render JSON lines instead of console output.
    """
    level: str = "INFO"
    json_logs: bool = False

    def __post_init__(self):
        """Validate settings after initialization."""
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise ValueError(
                f"LAZYDATE_LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, "
                f"CRITICAL, got: {self.level}"
            )

    @classmethod
    def from_env(cls) -> "LoggingSettings":
        """
        Load logging settings from environment variables.

        **Environment variables**:
          - LAZYDATE_LOG_LEVEL (optional): defaults to "INFO".
          - LAZYDATE_LOG_JSON (optional): defaults to false.

        Raises:
            ValueError: If the level name or boolean flag is invalid.
        """
        level = os.getenv("LAZYDATE_LOG_LEVEL", "INFO").strip().upper()
        json_logs = _parse_bool("LAZYDATE_LOG_JSON", os.getenv("LAZYDATE_LOG_JSON", "false"))
        return cls(level=level, json_logs=json_logs)


@dataclass(frozen=True)
class Settings:
    """
    Top-level settings object aggregating the subsystem settings.

    **Usage pattern**:
      ```python
      from src.config.settings import get_settings

      settings = get_settings()
      zone = settings.dates.naive_timezone
      ```

    Attributes:
        dates: Timestamp interpretation settings.
        logging: Logging settings.
    """
    dates: DateSettings = field(default_factory=DateSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load every subsystem's settings from the environment."""
        return cls(
            dates=DateSettings.from_env(),
            logging=LoggingSettings.from_env(),
        )


_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings object, loading it from the environment on first call.

    Tests can bypass this by passing their own Settings objects, or call
    reset_settings() after changing environment variables.

    Returns:
        Global Settings object.

    Raises:
        ValueError: If any environment variable holds an invalid value.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the cached global settings (for testing).

    The next get_settings() call reloads from the environment.
    """
    global _default_settings
    _default_settings = None
