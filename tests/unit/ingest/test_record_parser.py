"""Unit tests for fixed-width record parsing."""

from __future__ import annotations

import pytest

from core.errors import DmfRecordError
from ingest.record_parser import parse_record
from tests.record_lines import build_line


def test_parse_record_slices_every_field() -> None:
    """Parser should slice fields at their layout offsets without trimming."""
    line = build_line(
        status="C",
        ssn="279208203",
        last="ECKLE",
        suffix="JR",
        first="FORREST",
        middle="LEE",
        verified="P",
        date_of_death="12312011",
        date_of_birth="01241924",
    )

    record = parse_record(line)

    assert (
        record.status,
        record.ssn,
        record.last,
        record.suffix,
        record.first,
        record.middle,
        record.verified,
        record.date_of_death,
        record.date_of_birth,
    ) == (
        "C",
        "279208203",
        "ECKLE".ljust(20),
        "JR  ",
        "FORREST".ljust(15),
        "LEE".ljust(15),
        "P",
        "12312011",
        "01241924",
    )


def test_parse_record_keeps_blank_full_file_status() -> None:
    """Full-file records carry a blank status that must be preserved."""
    record = parse_record(build_line(status=" "))

    assert record.status == " "


def test_parse_record_ignores_line_terminators() -> None:
    """CRLF terminators should not leak into trailing fields."""
    line = build_line().rstrip("\n")[:81] + "\r\n"

    record = parse_record(line)

    assert record.date_of_birth == "01011950"


def test_parse_record_rejects_short_lines() -> None:
    """Lines shorter than 81 characters are malformed."""
    with pytest.raises(DmfRecordError):
        parse_record("A123456789DOE                SMITH          V0601198501019501")

    assert True


def test_parse_record_rejects_empty_lines() -> None:
    """A blank line is a malformed record, not a crash."""
    with pytest.raises(DmfRecordError):
        parse_record("\n")

    assert True
