"""Monthly update listing scrape.

The listing page holds a table with columns
``[File Name, Size, Date (Y/M/D), Frequency, Record Count, MD5 Checksum]``.
Cells carry arbitrary padding, so whitespace is stripped from names and digests.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import requests
from bs4 import BeautifulSoup

from core.constants import (
    ASCII_FILE_MARKER,
    LISTING_DATE_COLUMN,
    LISTING_DATE_FORMAT,
    LISTING_FILE_NAME_COLUMN,
    LISTING_MD5_COLUMN,
    LISTING_MIN_COLUMNS,
)
from core.errors import DmfAcquisitionError
from core.logging_config import get_logger
from core.types import MonthlyUpdateListing

_LOGGER = get_logger(__name__)


def fetch_listing(session: requests.Session, url: str, timeout: Any) -> str:
    """Download the listing page HTML.

    Args:
        session: HTTP session.
        url: Listing page URL.
        timeout: ``requests`` timeout value.

    Returns:
        Page HTML.

    Raises:
        DmfAcquisitionError: If the page cannot be fetched or is empty.
    """
    _LOGGER.info("listing_fetch_started", url=url)
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as error:
        raise DmfAcquisitionError(
            f"Failed to fetch update listing {url}: {error}. Check connectivity and retry."
        ) from error
    if not response.text.strip():
        raise DmfAcquisitionError(f"Update listing {url} returned an empty page.")
    return response.text


def find_monthly_update(html: str, period: date) -> MonthlyUpdateListing:
    """Find the ASCII update file published for ``period``.

    The ASCII file carries the ``MA`` marker; the EBCDIC twin does not.
    When several rows match, the last one wins.

    Args:
        html: Listing page HTML.
        period: Any day in the target month.

    Returns:
        File name and expected checksum.

    Raises:
        DmfAcquisitionError: If no row matches the period.
    """
    listing_date = period.strftime(LISTING_DATE_FORMAT)
    soup = BeautifulSoup(html, "html.parser")
    found: MonthlyUpdateListing | None = None
    for row in soup.find_all("tr"):
        cells = [cell.get_text() for cell in row.find_all(["td", "th"], recursive=False)]
        if len(cells) < LISTING_MIN_COLUMNS:
            continue
        file_name = _strip_whitespace(cells[LISTING_FILE_NAME_COLUMN])
        if ASCII_FILE_MARKER in file_name and listing_date in cells[LISTING_DATE_COLUMN]:
            found = MonthlyUpdateListing(
                file_name=file_name,
                md5=_strip_whitespace(cells[LISTING_MD5_COLUMN]),
            )
    if found is None:
        raise DmfAcquisitionError(
            f"Could not find update file for {listing_date} in the listing. "
            "The monthly file may not be published yet."
        )
    _LOGGER.info("listing_match_found", file_name=found.file_name, md5=found.md5)
    return found


def _strip_whitespace(value: str) -> str:
    return "".join(value.split())
