"""Structured logging configuration.

This module routes structlog events through stdlib logging so every
event reaches both the console and the dated run log file.
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

import structlog

from core.constants import LOG_FILE_TEMPLATE

_SQL_LOGGER_NAME = "sqlalchemy.engine"
_HANDLER_NAME = "dmf-sync"


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger accepting keyword event fields.
    """
    return structlog.get_logger(name)


def configure_logging(verbosity: int = 0, log_file: Path | None = None) -> None:
    """Configure console and file logging once per process.

    Args:
        verbosity: Count of ``-v`` flags; one enables debug, two also echoes SQL.
        log_file: Optional log file path; parent directories are created.
    """
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    reset_logging()
    root_logger = logging.getLogger()
    for handler in handlers:
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbosity >= 1 else logging.INFO)
    logging.getLogger(_SQL_LOGGER_NAME).setLevel(
        logging.INFO if verbosity >= 2 else logging.WARNING
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def reset_logging() -> None:
    """Remove and close handlers installed by ``configure_logging``."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()


def dated_log_file(log_dir: Path, run_date: date | None = None) -> Path:
    """Return the per-day log file path under ``log_dir``."""
    day = run_date or date.today()
    return log_dir / LOG_FILE_TEMPLATE.format(date=day.isoformat())
