"""Unit tests for the relational death index store."""

from __future__ import annotations

from datetime import date

import pytest

from core.errors import DmfConfigError, DmfStoreError
from core.types import DeathIndexRow
from store.death_index_store import DeathIndexStore, open_store


def _row(ssn: str = "123456789", first: str = "SMITH") -> DeathIndexRow:
    return DeathIndexRow(
        ssn=ssn,
        last="DOE",
        suffix="",
        first=first,
        middle="",
        verified="V",
        dodeath=date(1985, 6, 1),
        dobirth=date(1950, 1, 1),
    )


def test_upsert_new_key_reports_inserted(store: DeathIndexStore) -> None:
    """A fresh key should be inserted."""
    assert store.upsert(_row()) == "inserted"


def test_upsert_new_key_sets_created_equal_to_updated(store: DeathIndexStore) -> None:
    """First insertion stamps created and updated with the same time."""
    store.upsert(_row())

    stored = store.get("123456789")

    assert stored is not None and stored.created == stored.updated


def test_upsert_existing_key_overwrites_fields_and_keeps_created(
    store: DeathIndexStore,
) -> None:
    """A second upsert replaces mutable fields, advances updated, keeps created."""
    store.upsert(_row(first="SMITH"))
    first_stored = store.get("123456789")

    outcome = store.upsert(_row(first="JONES"))
    second_stored = store.get("123456789")

    assert (
        outcome == "updated"
        and first_stored is not None
        and second_stored is not None
        and second_stored.row.first == "JONES"
        and second_stored.created == first_stored.created
        and second_stored.updated > first_stored.updated
    )


def test_delete_existing_key_reports_deleted(store: DeathIndexStore) -> None:
    """Delete should remove an existing row."""
    store.upsert(_row())

    outcome = store.delete("123456789")

    assert outcome == "deleted" and store.get("123456789") is None


def test_delete_missing_key_reports_not_found(store: DeathIndexStore) -> None:
    """Deleting an absent key is a no-op."""
    assert store.delete("000000000") == "not_found"


def test_rollback_discards_uncommitted_rows(store: DeathIndexStore) -> None:
    """Rollback should return the table to its last committed state."""
    store.upsert(_row(ssn="111111111"))
    store.commit()
    store.upsert(_row(ssn="222222222"))

    store.rollback()

    assert store.count() == 1


def test_savepoint_rolls_back_only_nested_work(store: DeathIndexStore) -> None:
    """A failed savepoint should keep earlier work in the same transaction."""
    store.upsert(_row(ssn="111111111"))

    with pytest.raises(RuntimeError):
        with store.savepoint():
            store.upsert(_row(ssn="222222222"))
            raise RuntimeError("boom")
    store.commit()

    assert store.count() == 1 and store.get("111111111") is not None


def test_commit_persists_across_connections(tmp_path, clock) -> None:
    """Committed rows should be visible to a new connection."""
    database_url = f"sqlite:///{tmp_path / 'ssn.db'}"
    with open_store(database_url, clock=clock) as writer:
        writer.create_schema()
        writer.upsert(_row())
        writer.commit()

    with open_store(database_url, clock=clock) as reader:
        count = reader.count()

    assert count == 1


def test_upsert_without_schema_raises_store_error(clock) -> None:
    """Statement failures should surface as store errors."""
    with open_store("sqlite://", clock=clock) as bare_store:
        with pytest.raises(DmfStoreError):
            bare_store.upsert(_row())

    assert True


def test_reads_without_schema_raise_store_error(clock) -> None:
    """Lookups and counts should also surface failures as store errors."""
    with open_store("sqlite://", clock=clock) as bare_store:
        with pytest.raises(DmfStoreError):
            bare_store.get("123456789")
        bare_store.rollback()
        with pytest.raises(DmfStoreError):
            bare_store.count()

    assert True


def test_open_store_rejects_unknown_driver() -> None:
    """A driver SQLAlchemy cannot load is a configuration error."""
    with pytest.raises(DmfConfigError):
        open_store("nosuchdialect://localhost/ssn")

    assert True
