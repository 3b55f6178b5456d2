"""Load orchestration for full files and monthly updates.

This module coordinates checksum verification, the store connection,
and the source stream around one reconciliation run.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator

from sqlalchemy.engine import URL

from acquire.integrity import verify_checksum
from core.errors import DmfIngestError
from core.logging_config import get_logger
from core.types import AcquiredFile, LoadOptions, LoadSummary
from ingest.reconciliation import DeathIndexWriter, ReconciliationEngine
from store.death_index_store import open_store

_LOGGER = get_logger(__name__)

# Latin-1 decodes any byte, so a stray non-ASCII byte cannot abort a load.
_SOURCE_ENCODING = "latin-1"


def load_death_index(
    source: AcquiredFile,
    database_url: str | URL,
    options: LoadOptions,
    init_schema: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> LoadSummary:
    """Verify a source file and reconcile it into the death index.

    Args:
        source: Local file and optional expected checksum.
        database_url: Target database URL.
        options: Commit interval and error policy.
        init_schema: Create the table first when missing.
        clock: Optional timestamp source for the store.

    Returns:
        Reconciliation counters.

    Raises:
        DmfIntegrityError: If the checksum does not match.
        DmfIngestError: If the source cannot be read.
        DmfLoadAbortedError: If a mutation fails under the ``abort`` policy.
        DmfStoreError: If the store cannot be reached.
    """
    if source.md5:
        verify_checksum(source.path, source.md5)
    with open_store(database_url, clock=clock) as store:
        if init_schema:
            store.create_schema()
        return load_file(source.path, store, options)


def load_file(
    path: Path,
    store: DeathIndexWriter,
    options: LoadOptions,
    logger: Any | None = None,
) -> LoadSummary:
    """Stream one file through the reconciliation engine.

    The stream is closed whether the run finishes or aborts.
    """
    engine = ReconciliationEngine(store, options, logger)
    _LOGGER.info(
        "load_started",
        path=str(path),
        commit_interval=options.commit_interval,
        error_policy=options.error_policy,
    )
    with _open_source(path) as lines:
        return engine.run(lines)


@contextmanager
def _open_source(path: Path) -> Iterator[Iterator[str]]:
    """Open the source file for line iteration."""
    try:
        handle = path.open("r", encoding=_SOURCE_ENCODING, newline="")
    except OSError as error:
        raise DmfIngestError(
            f"Failed to read source at {path}: {error.strerror}. "
            "Provide an existing, readable DMF file."
        ) from error
    with handle:
        yield iter(handle)
