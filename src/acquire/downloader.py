"""Monthly update download.

This module resolves the current month's update from the listing,
reuses an existing local copy, or downloads it with bounded retries.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from acquire.integrity import checksum_sidecar_path, save_checksum_sidecar
from acquire.monthly_listing import fetch_listing, find_monthly_update
from core.config import DmfConfig
from core.constants import (
    DOWNLOAD_CHUNK_SIZE,
    HTTP_CONNECT_TIMEOUT,
    MONTHLY_DOWNLOAD_PATH,
    MONTHLY_LISTING_PATH,
    PARTIAL_DOWNLOAD_SUFFIX,
)
from core.errors import DmfAcquisitionError
from core.logging_config import get_logger
from core.types import AcquiredFile

_LOGGER = get_logger(__name__)
_RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def build_http_session(config: DmfConfig) -> requests.Session:
    """Create a session that retries failed GETs.

    ``http_retries`` counts total attempts, so the first try is not a retry.
    """
    retry = Retry(
        total=config.http_retries - 1,
        backoff_factor=1.0,
        status_forcelist=_RETRY_STATUS_CODES,
        allowed_methods=frozenset({"GET"}),
    )
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def acquire_monthly_update(
    config: DmfConfig,
    period: date | None = None,
    session: requests.Session | None = None,
) -> AcquiredFile:
    """Resolve, and if needed download, the update for ``period``.

    Args:
        config: Runtime configuration.
        period: Target month; defaults to today.
        session: Optional HTTP session, built from config when omitted.

    Returns:
        Local update file and its expected checksum.

    Raises:
        DmfAcquisitionError: If the listing, lookup, or download fails.
    """
    target_period = period or date.today()
    http_session = session or build_http_session(config)
    timeout = (HTTP_CONNECT_TIMEOUT, config.http_read_timeout)
    listing_html = fetch_listing(http_session, config.base_url + MONTHLY_LISTING_PATH, timeout)
    listing = find_monthly_update(listing_html, target_period)
    config.data_dir.mkdir(parents=True, exist_ok=True)
    update_path = config.data_dir / listing.file_name
    if update_path.exists():
        _LOGGER.info("update_file_reused", path=str(update_path))
        if not checksum_sidecar_path(update_path).exists():
            save_checksum_sidecar(update_path, listing.md5)
        return AcquiredFile(path=update_path, md5=listing.md5)
    url = f"{config.base_url}{MONTHLY_DOWNLOAD_PATH}/{listing.file_name}"
    download_file(http_session, url, update_path, config, timeout)
    save_checksum_sidecar(update_path, listing.md5)
    return AcquiredFile(path=update_path, md5=listing.md5)


def download_file(
    session: requests.Session,
    url: str,
    destination: Path,
    config: DmfConfig,
    timeout: tuple[float, float],
) -> None:
    """Stream ``url`` into ``destination`` through a partial file.

    The partial file is renamed only after the body is fully written,
    and removed if the transfer fails.

    Raises:
        DmfAcquisitionError: If the transfer fails after retries.
    """
    partial_path = destination.with_name(destination.name + PARTIAL_DOWNLOAD_SUFFIX)
    auth = _build_auth(config)
    _LOGGER.info("download_started", url=url, path=str(destination))
    try:
        with session.get(url, auth=auth, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with partial_path.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    handle.write(chunk)
        partial_path.replace(destination)
    except (requests.RequestException, OSError) as error:
        partial_path.unlink(missing_ok=True)
        raise DmfAcquisitionError(
            f"Failed to download {url}: {error}. "
            "Check DMF_DOWNLOAD_USER/DMF_DOWNLOAD_PASSWORD and retry."
        ) from error
    _LOGGER.info("download_finished", path=str(destination))


def _build_auth(config: DmfConfig) -> tuple[str, str] | None:
    if not config.download_user:
        return None
    return (config.download_user, config.download_password or "")
