"""Fixed-width DMF record parsing.

Each record is 100 characters; positions 82-100 have been blank since
the November 2011 layout revision and are ignored.
"""

from __future__ import annotations

from core.constants import (
    DATE_OF_BIRTH_SLICE,
    DATE_OF_DEATH_SLICE,
    FIRST_NAME_SLICE,
    LAST_NAME_SLICE,
    MIDDLE_NAME_SLICE,
    MIN_RECORD_LENGTH,
    SSN_SLICE,
    STATUS_SLICE,
    SUFFIX_SLICE,
    VERIFIED_SLICE,
)
from core.errors import DmfRecordError
from core.types import SourceRecord


def parse_record(line: str) -> SourceRecord:
    """Slice one DMF line into raw fields.

    Field values are kept exactly as sliced, padding included.

    Args:
        line: Raw input line, with or without its line terminator.

    Returns:
        Parsed source record.

    Raises:
        DmfRecordError: If the line is too short to hold every field.
    """
    record_text = line.rstrip("\r\n")
    if len(record_text) < MIN_RECORD_LENGTH:
        raise DmfRecordError(
            f"Malformed record: expected at least {MIN_RECORD_LENGTH} characters, "
            f"got {len(record_text)}."
        )
    return SourceRecord(
        status=record_text[STATUS_SLICE],
        ssn=record_text[SSN_SLICE],
        last=record_text[LAST_NAME_SLICE],
        suffix=record_text[SUFFIX_SLICE],
        first=record_text[FIRST_NAME_SLICE],
        middle=record_text[MIDDLE_NAME_SLICE],
        verified=record_text[VERIFIED_SLICE],
        date_of_death=record_text[DATE_OF_DEATH_SLICE],
        date_of_birth=record_text[DATE_OF_BIRTH_SLICE],
    )
