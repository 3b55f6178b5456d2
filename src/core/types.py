"""Shared typed models.

This module defines the data models used by ingest, store,
acquisition, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Literal

from core.constants import DEFAULT_COMMIT_INTERVAL

RecordAction = Literal["add", "change", "delete", "unknown"]
UpsertOutcome = Literal["inserted", "updated"]
DeleteOutcome = Literal["deleted", "not_found"]
ErrorPolicy = Literal["abort", "skip"]
ERROR_POLICIES: tuple[ErrorPolicy, ...] = ("abort", "skip")


@dataclass(frozen=True)
class SourceRecord:
    """One fixed-width DMF line sliced into raw fields.

    Attributes:
        status: Add/change/delete flag, blank for full files.
        ssn: Nine-character social security number, the record key.
        last: Last name as sliced.
        suffix: Name suffix as sliced.
        first: First name as sliced.
        middle: Middle name as sliced.
        verified: Verification code (``V``, ``P``, ``N`` or blank).
        date_of_death: Raw ``MMDDCCYY`` date of death.
        date_of_birth: Raw ``MMDDCCYY`` date of birth.
    """

    status: str
    ssn: str
    last: str
    suffix: str
    first: str
    middle: str
    verified: str
    date_of_death: str
    date_of_birth: str


@dataclass(frozen=True)
class DeathIndexRow:
    """Validated row written to the death index table.

    Attributes:
        ssn: Primary key.
        last: Last name.
        suffix: Name suffix.
        first: First name.
        middle: Middle name.
        verified: Verification code.
        dodeath: Date of death.
        dobirth: Date of birth.
    """

    ssn: str
    last: str
    suffix: str
    first: str
    middle: str
    verified: str
    dodeath: date
    dobirth: date


@dataclass(frozen=True)
class StoredDeathIndexRow:
    """Death index row as persisted, with audit timestamps."""

    row: DeathIndexRow
    created: datetime
    updated: datetime


@dataclass(frozen=True)
class LoadOptions:
    """Reconciliation run options.

    Attributes:
        commit_interval: Commit after every N input lines.
        error_policy: ``abort`` stops the run on a failed mutation,
            ``skip`` rolls back only the failed record and continues.
    """

    commit_interval: int = DEFAULT_COMMIT_INTERVAL
    error_policy: ErrorPolicy = "abort"


@dataclass
class LoadSummary:
    """Running counters for one reconciliation pass."""

    lines_read: int = 0
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    not_found: int = 0
    malformed: int = 0
    invalid_dates: int = 0
    unknown_status: int = 0
    failed: int = 0
    commits: int = 0

    @property
    def skipped(self) -> int:
        """Count lines that produced no store mutation."""
        return self.malformed + self.invalid_dates + self.unknown_status + self.failed


@dataclass(frozen=True)
class AcquiredFile:
    """Local data file with its expected checksum.

    Attributes:
        path: Local path of the update file.
        md5: Expected hex MD5 digest, if known.
    """

    path: Path
    md5: str | None = None


@dataclass(frozen=True)
class MonthlyUpdateListing:
    """Row of the published monthly update listing."""

    file_name: str
    md5: str
