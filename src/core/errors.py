"""Loader exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class DmfError(Exception):
    """Base exception for all loader failures."""


class DmfConfigError(DmfError):
    """Raised for invalid runtime configuration."""


class DmfIngestError(DmfError):
    """Raised when the source file cannot be opened or read."""


class DmfRecordError(DmfError):
    """Raised for a malformed source record; recoverable per record."""


class DmfStoreError(DmfError):
    """Raised for death index store failures."""


class DmfLoadAbortedError(DmfStoreError):
    """Raised when a failed mutation aborts the whole load."""


class DmfAcquisitionError(DmfError):
    """Raised when the monthly update cannot be resolved or downloaded."""


class DmfIntegrityError(DmfError):
    """Raised when a data file fails checksum verification."""
