"""SQLAlchemy table definition for the death index."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CHAR, Column, Date, DateTime, Index, MetaData, String, Table

from core.constants import DEATH_INDEX_TABLE_NAME


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


metadata = MetaData()

death_index = Table(
    DEATH_INDEX_TABLE_NAME,
    metadata,
    Column("ssn", CHAR(9), primary_key=True),
    Column("last", String(20), nullable=False),
    Column("suffix", String(4), nullable=True),
    Column("first", String(15), nullable=False),
    Column("middle", String(15), nullable=True),
    Column("verified", CHAR(1), nullable=False),
    Column("dodeath", Date, nullable=False),
    Column("dobirth", Date, nullable=False),
    Column("created", DateTime(timezone=True), nullable=False),
    Column("updated", DateTime(timezone=True), nullable=False, onupdate=utc_now),
    Index("ix_death_index_first", "first"),
    Index("ix_death_index_last", "last"),
    Index("ix_death_index_dobirth", "dobirth"),
)

# Columns overwritten when an add/change lands on an existing ssn.
MUTABLE_COLUMNS = ("last", "suffix", "first", "middle", "verified", "dodeath", "dobirth")
