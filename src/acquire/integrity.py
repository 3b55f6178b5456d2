"""Checksum sidecars and file integrity verification.

A sidecar is a plain-text ``<file>.md5`` holding the expected digest,
kept next to the data file so a reload can be re-verified later.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from core.constants import CHECKSUM_CHUNK_SIZE, CHECKSUM_SIDECAR_SUFFIX
from core.errors import DmfIntegrityError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


def checksum_sidecar_path(data_path: Path) -> Path:
    """Return the sidecar path for ``data_path``."""
    return data_path.with_name(data_path.name + CHECKSUM_SIDECAR_SUFFIX)


def save_checksum_sidecar(data_path: Path, md5: str) -> Path:
    """Write the expected checksum next to the data file.

    Args:
        data_path: Data file the checksum belongs to.
        md5: Expected hex digest.

    Returns:
        Sidecar path.
    """
    sidecar_path = checksum_sidecar_path(data_path)
    _LOGGER.info("checksum_sidecar_saved", md5=md5, path=str(sidecar_path))
    sidecar_path.write_text(md5, encoding="utf-8")
    return sidecar_path


def read_checksum_sidecar(data_path: Path) -> str | None:
    """Read the sidecar checksum for ``data_path`` if one exists."""
    sidecar_path = checksum_sidecar_path(data_path)
    if not sidecar_path.exists():
        return None
    return sidecar_path.read_text(encoding="utf-8").strip() or None


def compute_md5(data_path: Path) -> str:
    """Compute the hex MD5 digest of a file in fixed-size chunks."""
    digest = hashlib.md5()
    with data_path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(CHECKSUM_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_checksum(data_path: Path, expected_md5: str) -> None:
    """Verify a data file against its expected checksum.

    On mismatch both the data file and its sidecar are removed so the
    next run downloads a fresh copy.

    Args:
        data_path: File to verify.
        expected_md5: Expected hex digest, case-insensitive.

    Raises:
        DmfIntegrityError: If the file is missing or the digest differs.
    """
    _LOGGER.info("checksum_check_started", path=str(data_path))
    if not data_path.is_file():
        raise DmfIntegrityError(
            f"Cannot verify checksum: {data_path} does not exist. "
            "Provide an existing update file."
        )
    actual_md5 = compute_md5(data_path)
    if actual_md5 == expected_md5.strip().lower():
        _LOGGER.info("checksum_matched", path=str(data_path))
        return
    data_path.unlink(missing_ok=True)
    checksum_sidecar_path(data_path).unlink(missing_ok=True)
    raise DmfIntegrityError(
        f"Checksum mismatch for {data_path}: expected {expected_md5}, got {actual_md5}. "
        "The file and its sidecar were removed; download it again."
    )
