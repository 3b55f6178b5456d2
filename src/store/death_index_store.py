"""Relational death index store.

This module wraps one SQLAlchemy connection with autocommit disabled.
It provides keyed upsert and delete plus explicit transaction control.
"""

from __future__ import annotations

from datetime import datetime
from types import TracebackType
from typing import Any, Callable, ContextManager

from sqlalchemy import create_engine, delete, event, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import DmfConfigError, DmfStoreError
from core.logging_config import get_logger
from core.types import DeathIndexRow, DeleteOutcome, StoredDeathIndexRow, UpsertOutcome
from store.schema import MUTABLE_COLUMNS, death_index, metadata, utc_now

_LOGGER = get_logger(__name__)

_DIALECT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class DeathIndexStore:
    """Keyed death index table accessed through a single connection.

    The connection runs in commit-as-you-go mode: a transaction begins
    on the first statement and stays open until ``commit`` or ``rollback``.
    """

    def __init__(self, engine: Engine, clock: Callable[[], datetime] | None = None) -> None:
        """Connect to the database behind ``engine``.

        Args:
            engine: SQLAlchemy engine for the target database.
            clock: Optional timestamp source for ``created``/``updated``.

        Raises:
            DmfConfigError: If the dialect has no upsert support here.
            DmfStoreError: If the connection cannot be opened.
        """
        dialect_name = engine.dialect.name
        if dialect_name not in _DIALECT_INSERTS:
            raise DmfConfigError(
                f"Unsupported database dialect '{dialect_name}'. "
                f"Use one of: {', '.join(sorted(_DIALECT_INSERTS))}."
            )
        self._engine = engine
        self._insert = _DIALECT_INSERTS[dialect_name]
        self._clock = clock or utc_now
        try:
            self._connection = engine.connect()
        except SQLAlchemyError as error:
            raise DmfStoreError(
                f"Failed to connect to {engine.url.render_as_string(hide_password=True)}: "
                f"{error}. Check database settings and retry."
            ) from error

    def __enter__(self) -> "DeathIndexStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def create_schema(self) -> None:
        """Create the death index table and indexes when missing."""
        try:
            metadata.create_all(self._connection)
            self._connection.commit()
        except SQLAlchemyError as error:
            raise DmfStoreError(f"Failed to create death index schema: {error}.") from error
        _LOGGER.info("schema_ready", table=death_index.name)

    def upsert(self, row: DeathIndexRow) -> UpsertOutcome:
        """Insert a row, or overwrite every mutable field of an existing one.

        ``created`` is only set on insert; ``updated`` is set on both paths.

        Args:
            row: Validated death index row.

        Returns:
            ``inserted`` for a new ssn, ``updated`` for an existing one.

        Raises:
            DmfStoreError: If the statement fails.
        """
        now = self._clock()
        values = _row_values(row)
        statement = self._insert(death_index).values(**values, created=now, updated=now)
        statement = statement.on_conflict_do_update(
            index_elements=[death_index.c.ssn],
            set_={
                **{column: statement.excluded[column] for column in MUTABLE_COLUMNS},
                "updated": now,
            },
        )
        try:
            existed = self._exists(row.ssn)
            self._connection.execute(statement)
        except SQLAlchemyError as error:
            raise DmfStoreError(f"Failed to upsert ssn {row.ssn}: {error}.") from error
        return "updated" if existed else "inserted"

    def delete(self, ssn: str) -> DeleteOutcome:
        """Delete the row keyed by ``ssn``; an absent key is not an error.

        Raises:
            DmfStoreError: If the statement fails.
        """
        statement = delete(death_index).where(death_index.c.ssn == ssn)
        try:
            result = self._connection.execute(statement)
        except SQLAlchemyError as error:
            raise DmfStoreError(f"Failed to delete ssn {ssn}: {error}.") from error
        return "deleted" if result.rowcount else "not_found"

    def get(self, ssn: str) -> StoredDeathIndexRow | None:
        """Load one stored row by ssn, or None when absent.

        Raises:
            DmfStoreError: If the query fails.
        """
        statement = select(death_index).where(death_index.c.ssn == ssn)
        try:
            mapping = self._connection.execute(statement).mappings().first()
        except SQLAlchemyError as error:
            raise DmfStoreError(f"Failed to read ssn {ssn}: {error}.") from error
        if mapping is None:
            return None
        return StoredDeathIndexRow(
            row=DeathIndexRow(
                ssn=mapping["ssn"],
                last=mapping["last"],
                suffix=mapping["suffix"],
                first=mapping["first"],
                middle=mapping["middle"],
                verified=mapping["verified"],
                dodeath=mapping["dodeath"],
                dobirth=mapping["dobirth"],
            ),
            created=mapping["created"],
            updated=mapping["updated"],
        )

    def count(self) -> int:
        """Return the number of stored rows."""
        statement = select(func.count()).select_from(death_index)
        try:
            return int(self._connection.execute(statement).scalar_one())
        except SQLAlchemyError as error:
            raise DmfStoreError(f"Failed to count death index rows: {error}.") from error

    def savepoint(self) -> ContextManager[Any]:
        """Begin a nested transaction released on success, rolled back on error."""
        return self._connection.begin_nested()

    def commit(self) -> None:
        """Commit the open transaction.

        Raises:
            DmfStoreError: If the commit fails.
        """
        try:
            self._connection.commit()
        except SQLAlchemyError as error:
            raise DmfStoreError(f"Failed to commit death index batch: {error}.") from error

    def rollback(self) -> None:
        """Roll back the open transaction.

        Raises:
            DmfStoreError: If the rollback fails.
        """
        try:
            self._connection.rollback()
        except SQLAlchemyError as error:
            raise DmfStoreError(f"Failed to roll back death index batch: {error}.") from error

    def close(self) -> None:
        """Close the connection and release the engine pool."""
        self._connection.close()
        self._engine.dispose()

    def _exists(self, ssn: str) -> bool:
        statement = select(death_index.c.ssn).where(death_index.c.ssn == ssn)
        return self._connection.execute(statement).first() is not None


def open_store(
    url: str | URL,
    clock: Callable[[], datetime] | None = None,
) -> DeathIndexStore:
    """Create an engine for ``url`` and open a store on it.

    Args:
        url: SQLAlchemy database URL.
        clock: Optional timestamp source.

    Returns:
        Connected store; close it or use it as a context manager.

    Raises:
        DmfConfigError: If the URL or driver cannot be used.
        DmfStoreError: If the connection fails.
    """
    try:
        engine = create_engine(url)
    except (SQLAlchemyError, ImportError) as error:
        raise DmfConfigError(
            f"Invalid database URL or missing driver for '{url}': {error}. "
            "Check DMF_DB_DRIVER and install the matching driver."
        ) from error
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)
    return DeathIndexStore(engine, clock=clock)


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so pysqlite savepoints nest correctly."""

    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Any) -> None:
        connection.exec_driver_sql("BEGIN")


def _row_values(row: DeathIndexRow) -> dict[str, object]:
    """Map a row onto table column values."""
    return {
        "ssn": row.ssn,
        "last": row.last,
        "suffix": row.suffix,
        "first": row.first,
        "middle": row.middle,
        "verified": row.verified,
        "dodeath": row.dodeath,
        "dobirth": row.dobirth,
    }
