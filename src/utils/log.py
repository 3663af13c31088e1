"""
Structured logging for the library, silent unless the application opts in.

**Conceptual**: Library modules log structured events through structlog,
but the events are handed to standard library loggers (named after the
module, under the ``src`` package logger). That package logger carries a
NullHandler, so nothing reaches stdout or stderr until an application
installs handlers, either its own or via ``setup_logging()``.

**Usage**:
    logger = get_logger(__name__)
    logger.warning("singleton_cleanup_failed", name="Pool", error="...")

    # In an application entry point:
    setup_logging()                      # level/format from LAZYDATE_LOG_*
    setup_logging("DEBUG", json_logs=True)
"""

import logging
import sys
from typing import Optional

import structlog

from src.config.settings import get_settings

PACKAGE_LOGGER_NAME = "src"

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Route library events to stdout with a rendered format.

    Arguments left as None come from ``get_settings().logging``
    (LAZYDATE_LOG_LEVEL, LAZYDATE_LOG_JSON).

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Render JSON lines instead of the human-readable console format.

    Raises:
        AttributeError: If the level name is unknown.
    """
    settings = get_settings().logging
    level = settings.level if level is None else level
    json_logs = settings.json_logs if json_logs is None else json_logs
    numeric_level = getattr(logging, level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(numeric_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger backed by the stdlib logger ``name``.

    Processors are read from the structlog configuration when the logger is
    first used, so ``setup_logging()`` (or ``structlog.testing.capture_logs``)
    takes effect for loggers created at import time.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
