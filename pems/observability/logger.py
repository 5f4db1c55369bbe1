"""Structured logging for the exemption engine, built on structlog.

Every entry carries the application name and version. Review and intake
paths bind the acting identity (student or reviewer) and the record id with
``log_context`` so nested calls into the validator, the roster and the store
log against the same ids without threading them through every signature.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor

APP_NAME = "pems"
APP_VERSION = "0.4.0"

LOG_FORMATS = ("json", "console")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every log entry with the application name and version.

    Args:
        logger: Logger instance
        method_name: Method name
        event_dict: Event dictionary

    Returns:
        Modified event dictionary with app context
    """
    event_dict.setdefault("app", APP_NAME)
    event_dict.setdefault("version", APP_VERSION)
    return event_dict


def _renderers(log_format: str) -> list[Processor]:
    if log_format == "console":
        return [
            structlog.processors.ExceptionPrettyPrinter(),
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]
    # Chinese policy messages stay readable in the JSON sink
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ]


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; the CLI calls it again after settings load
    so the configured level and sink replace the import-time defaults.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
        log_file: Optional log file path, written in addition to stdout
    """
    if log_format not in LOG_FORMATS:
        raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")
    numeric_level = getattr(logging, str(log_level).upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    structlog.configure(
        processors=shared_processors + _renderers(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(format="%(message)s", level=numeric_level, handlers=handlers, force=True)


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` to every entry logged inside the block.

    Example:
        with log_context(reviewer_id="r-1", achievement_id="a-9"):
            service.review(...)
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (defaults to caller's module name)

    Returns:
        Structured logger
    """
    return structlog.get_logger(name)


# Defaults until setup_logging() is called with loaded settings
setup_logging()
