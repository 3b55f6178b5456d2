"""Unit tests for the monthly listing scrape."""

from __future__ import annotations

from datetime import date

import pytest
import requests

from acquire.monthly_listing import fetch_listing, find_monthly_update
from core.errors import DmfAcquisitionError
from tests.fixture_paths import fixture_path


class _FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None, error: Exception | None = None):
        self._response = response
        self._error = error

    def get(self, url: str, **kwargs) -> _FakeResponse:
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response


def _listing_html() -> str:
    return fixture_path("dmf/monthly_listing.html").read_text(encoding="utf-8")


def test_find_monthly_update_picks_ascii_file_for_period() -> None:
    """The ASCII (MA) row for the requested month should be selected."""
    listing = find_monthly_update(_listing_html(), date(2024, 2, 17))

    assert listing.file_name == "MA240201"


def test_find_monthly_update_strips_padding_from_checksum() -> None:
    """Cell padding and embedded whitespace should be removed from the checksum."""
    listing = find_monthly_update(_listing_html(), date(2024, 2, 1))

    assert listing.md5 == "0123456789abcdef0123456789abcdef"


def test_find_monthly_update_raises_when_period_missing() -> None:
    """A month without a published file should fail acquisition."""
    with pytest.raises(DmfAcquisitionError):
        find_monthly_update(_listing_html(), date(2023, 12, 1))

    assert True


def test_fetch_listing_returns_page_text() -> None:
    """A successful fetch should return the page body."""
    session = _FakeSession(response=_FakeResponse("<table></table>"))

    html = fetch_listing(session, "https://example.test/monthly/", timeout=5)

    assert html == "<table></table>"


def test_fetch_listing_wraps_request_errors() -> None:
    """Network failures should surface as acquisition errors."""
    session = _FakeSession(error=requests.ConnectionError("unreachable"))

    with pytest.raises(DmfAcquisitionError):
        fetch_listing(session, "https://example.test/monthly/", timeout=5)

    assert True


def test_fetch_listing_rejects_empty_page() -> None:
    """An empty listing body should fail acquisition."""
    session = _FakeSession(response=_FakeResponse("   "))

    with pytest.raises(DmfAcquisitionError):
        fetch_listing(session, "https://example.test/monthly/", timeout=5)

    assert True
