"""Reconciliation of DMF records against the death index store.

This module streams fixed-width lines through parsing and date checks,
maps each status flag to an upsert or delete, and commits in batches.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, ContextManager, Iterable, Protocol

from core.constants import STATUS_ADD, STATUS_CHANGE, STATUS_DELETE, STATUS_FULL_FILE
from core.errors import DmfConfigError, DmfLoadAbortedError, DmfRecordError
from core.logging_config import get_logger
from core.types import (
    DeathIndexRow,
    DeleteOutcome,
    LoadOptions,
    LoadSummary,
    RecordAction,
    SourceRecord,
    UpsertOutcome,
)
from ingest.date_validator import parse_dmf_date
from ingest.record_parser import parse_record

_STATUS_ACTIONS: dict[str, RecordAction] = {
    STATUS_FULL_FILE: "add",
    STATUS_ADD: "add",
    STATUS_CHANGE: "change",
    STATUS_DELETE: "delete",
}

# Outcome each upsert action expects; the other outcome is tolerated with a warning.
_EXPECTED_UPSERT_OUTCOME: dict[RecordAction, UpsertOutcome] = {
    "add": "inserted",
    "change": "updated",
}


class DeathIndexWriter(Protocol):
    """Store operations the engine needs."""

    def upsert(self, row: DeathIndexRow) -> UpsertOutcome:
        """Insert or overwrite one row by ssn."""

    def delete(self, ssn: str) -> DeleteOutcome:
        """Delete one row by ssn."""

    def commit(self) -> None:
        """Commit the open transaction."""

    def rollback(self) -> None:
        """Roll back the open transaction."""

    def savepoint(self) -> ContextManager[Any]:
        """Open a nested transaction for one mutation."""


def classify_status(status: str) -> RecordAction:
    """Map a record status flag to its action.

    Blank (full file) and ``A`` add, ``C`` changes, ``D`` deletes.
    """
    return _STATUS_ACTIONS.get(status, "unknown")


class ReconciliationEngine:
    """Sequential applier of DMF records to a death index store."""

    def __init__(
        self,
        store: DeathIndexWriter,
        options: LoadOptions | None = None,
        logger: Any | None = None,
    ) -> None:
        self._store = store
        self._options = options or LoadOptions()
        if self._options.commit_interval < 1:
            raise DmfConfigError(
                f"Invalid commit interval {self._options.commit_interval}: "
                "expected a positive number of rows."
            )
        self._logger = logger if logger is not None else get_logger(__name__)

    def run(self, lines: Iterable[str]) -> LoadSummary:
        """Apply every line in order and commit in batches.

        Args:
            lines: Fixed-width input lines in file order.

        Returns:
            Counters describing what the run did.

        Raises:
            DmfLoadAbortedError: If a mutation fails under the ``abort`` policy.
        """
        summary = LoadSummary()
        for line in lines:
            summary.lines_read += 1
            self._process_line(line, summary.lines_read, summary)
            if summary.lines_read % self._options.commit_interval == 0:
                self._logger.info("batch_commit", lines_processed=summary.lines_read)
                self._commit(summary)
        self._logger.info("final_commit", lines_processed=summary.lines_read)
        self._commit(summary)
        self._logger.info("reconciliation_finished", **asdict(summary), skipped=summary.skipped)
        return summary

    def _commit(self, summary: LoadSummary) -> None:
        """Commit the open batch and count it."""
        self._store.commit()
        summary.commits += 1

    def _process_line(self, line: str, line_number: int, summary: LoadSummary) -> None:
        """Parse, validate and dispatch one input line."""
        try:
            record = parse_record(line)
        except DmfRecordError as error:
            summary.malformed += 1
            self._logger.warning("record_malformed", line_number=line_number, error=str(error))
            return
        row = self._build_row(record, line_number)
        if row is None:
            summary.invalid_dates += 1
            return
        action = classify_status(record.status)
        if action == "unknown":
            summary.unknown_status += 1
            self._logger.error(
                "record_bad_status",
                ssn=record.ssn,
                status=record.status,
                line_number=line_number,
            )
            return
        if self._options.error_policy == "skip":
            self._apply_or_skip(action, row, line_number, summary)
        else:
            self._apply_or_abort(action, row, line_number, summary)

    def _build_row(self, record: SourceRecord, line_number: int) -> DeathIndexRow | None:
        """Validate both dates and build the row, or warn and return None."""
        dodeath = parse_dmf_date(record.date_of_death)
        dobirth = parse_dmf_date(record.date_of_birth)
        if dodeath is None or dobirth is None:
            self._logger.warning(
                "record_invalid_dates",
                ssn=record.ssn,
                date_of_birth=record.date_of_birth,
                date_of_death=record.date_of_death,
                line_number=line_number,
            )
            return None
        return DeathIndexRow(
            ssn=record.ssn,
            last=record.last,
            suffix=record.suffix,
            first=record.first,
            middle=record.middle,
            verified=record.verified,
            dodeath=dodeath,
            dobirth=dobirth,
        )

    def _apply_or_abort(
        self,
        action: RecordAction,
        row: DeathIndexRow,
        line_number: int,
        summary: LoadSummary,
    ) -> None:
        """Apply one mutation; on failure roll back and abort the load."""
        try:
            self._apply(action, row, summary)
        except Exception as error:
            self._logger.critical(
                "transaction_aborted",
                ssn=row.ssn,
                action=action,
                line_number=line_number,
                error=str(error),
            )
            self._rollback_after_failure()
            raise DmfLoadAbortedError(
                f"Load aborted at line {line_number} ({action} {row.ssn}): {error}. "
                "Uncommitted rows were rolled back; fix the cause and re-run the file."
            ) from error

    def _apply_or_skip(
        self,
        action: RecordAction,
        row: DeathIndexRow,
        line_number: int,
        summary: LoadSummary,
    ) -> None:
        """Apply one mutation inside a savepoint; on failure count it and continue."""
        try:
            with self._store.savepoint():
                self._apply(action, row, summary)
        except Exception as error:
            summary.failed += 1
            self._logger.error(
                "record_failed",
                ssn=row.ssn,
                action=action,
                line_number=line_number,
                error=str(error),
            )

    def _rollback_after_failure(self) -> None:
        """Roll back the open batch, logging a rollback that itself fails."""
        try:
            self._store.rollback()
        except Exception as error:
            self._logger.error("rollback_failed", error=str(error))

    def _apply(self, action: RecordAction, row: DeathIndexRow, summary: LoadSummary) -> None:
        """Dispatch a row to upsert or delete and log the outcome."""
        if action == "delete":
            self._apply_delete(row.ssn, summary)
            return
        outcome = self._store.upsert(row)
        if outcome == "inserted":
            summary.inserted += 1
        else:
            summary.updated += 1
        if outcome == _EXPECTED_UPSERT_OUTCOME[action]:
            self._logger.info(f"record_{outcome}", ssn=row.ssn, action=action)
        else:
            self._logger.warning(f"record_{outcome}_instead", ssn=row.ssn, action=action)

    def _apply_delete(self, ssn: str, summary: LoadSummary) -> None:
        """Delete a key and log whether a row was removed."""
        outcome = self._store.delete(ssn)
        if outcome == "deleted":
            summary.deleted += 1
            self._logger.info("record_deleted", ssn=ssn)
        else:
            summary.not_found += 1
            self._logger.warning("record_delete_not_found", ssn=ssn)
