"""Pytest configuration and shared fixtures.

``src`` and the repository root are put on ``sys.path`` by the pytest
``pythonpath`` setting in pyproject.toml.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterator

import pytest
import structlog

from core.logging_config import reset_logging
from store.death_index_store import DeathIndexStore, open_store


class SteppingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        current = self._now
        self._now = current + timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop handlers, levels and structlog config installed by a test."""
    root_logger = logging.getLogger()
    sql_logger = logging.getLogger("sqlalchemy.engine")
    root_level, sql_level = root_logger.level, sql_logger.level
    yield
    reset_logging()
    root_logger.setLevel(root_level)
    sql_logger.setLevel(sql_level)
    structlog.reset_defaults()


@pytest.fixture
def clock() -> SteppingClock:
    """Provide a deterministic timestamp source."""
    return SteppingClock()


@pytest.fixture
def store(clock: SteppingClock) -> Iterator[DeathIndexStore]:
    """Provide an in-memory death index store with schema created."""
    death_index_store = open_store("sqlite://", clock=clock)
    death_index_store.create_schema()
    yield death_index_store
    death_index_store.close()
