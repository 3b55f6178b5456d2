"""Calendar validation for DMF ``MMDDCCYY`` dates."""

from __future__ import annotations

import re
from datetime import date

_DMF_DATE_PATTERN = re.compile(r"([0-9]{2})([0-9]{2})([0-9]{4})")


def parse_dmf_date(raw_value: str) -> date | None:
    """Convert an ``MMDDCCYY`` string into a date.

    Century and two-digit year are read together as a four-digit year.
    Bad dates do occur in published files, e.g. ``60006200`` in MA120501.

    Args:
        raw_value: Raw eight-digit date field.

    Returns:
        Parsed date, or None when the value is not a real calendar date.
    """
    match = _DMF_DATE_PATTERN.fullmatch(raw_value)
    if match is None:
        return None
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def is_valid_dmf_date(raw_value: str) -> bool:
    """Return whether ``raw_value`` is a valid ``MMDDCCYY`` date."""
    return parse_dmf_date(raw_value) is not None
