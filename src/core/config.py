"""Runtime configuration model for the loader.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from sqlalchemy.engine import URL

from core.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_DATA_DIR,
    DEFAULT_DB_DRIVER,
    DEFAULT_DB_HOST,
    DEFAULT_DB_PORT,
    DEFAULT_HTTP_READ_TIMEOUT,
    DEFAULT_HTTP_RETRIES,
    LOG_DIR_NAME,
)
from core.errors import DmfConfigError


@dataclass(frozen=True)
class DmfConfig:
    """Validated runtime configuration.

    Attributes:
        data_dir: Directory holding downloaded updates and checksum sidecars.
        log_dir: Directory for dated run log files.
        base_url: Root URL of the DMF distribution site.
        download_user: Basic-auth user for update downloads.
        download_password: Basic-auth password for update downloads.
        db_driver: SQLAlchemy driver name, e.g. ``postgresql+psycopg``.
        db_host: Database host.
        db_port: Database port.
        db_user: Optional database user.
        db_password: Optional database password.
        http_retries: Total download attempts before giving up.
        http_read_timeout: Socket read timeout in seconds.
    """

    data_dir: Path
    log_dir: Path
    base_url: str
    download_user: str | None
    download_password: str | None
    db_driver: str
    db_host: str
    db_port: int
    db_user: str | None
    db_password: str | None
    http_retries: int
    http_read_timeout: float

    @classmethod
    def from_env(cls) -> "DmfConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            DmfConfigError: If environment values are invalid.
        """
        data_dir = Path(os.getenv("DMF_DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser()
        log_dir_value = os.getenv("DMF_LOG_DIR")
        log_dir = Path(log_dir_value).expanduser() if log_dir_value else data_dir / LOG_DIR_NAME
        return cls(
            data_dir=data_dir,
            log_dir=log_dir,
            base_url=os.getenv("DMF_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            download_user=os.getenv("DMF_DOWNLOAD_USER"),
            download_password=os.getenv("DMF_DOWNLOAD_PASSWORD"),
            db_driver=os.getenv("DMF_DB_DRIVER", DEFAULT_DB_DRIVER),
            db_host=os.getenv("DMF_DB_HOST", DEFAULT_DB_HOST),
            db_port=_parse_int("DMF_DB_PORT", os.getenv("DMF_DB_PORT", str(DEFAULT_DB_PORT))),
            db_user=os.getenv("DMF_DB_USER"),
            db_password=os.getenv("DMF_DB_PASSWORD"),
            http_retries=_parse_int(
                "DMF_HTTP_RETRIES", os.getenv("DMF_HTTP_RETRIES", str(DEFAULT_HTTP_RETRIES))
            ),
            http_read_timeout=_parse_float(
                "DMF_HTTP_READ_TIMEOUT",
                os.getenv("DMF_HTTP_READ_TIMEOUT", str(DEFAULT_HTTP_READ_TIMEOUT)),
            ),
        )

    def database_url(self, database_name: str) -> URL:
        """Build the SQLAlchemy URL for a target database.

        SQLite drivers treat ``database_name`` as the database file path.

        Args:
            database_name: Target database name.

        Returns:
            Connection URL.
        """
        if self.db_driver.startswith("sqlite"):
            return URL.create(drivername=self.db_driver, database=database_name)
        return URL.create(
            drivername=self.db_driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=database_name,
        )


def _parse_int(name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Raises:
        DmfConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise DmfConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
    if value < 1:
        raise DmfConfigError(
            f"Invalid {name} value: expected a positive integer, got {value}."
        )
    return value


def _parse_float(name: str, raw_value: str) -> float:
    """Parse a positive float environment value."""
    try:
        value = float(raw_value)
    except ValueError as error:
        raise DmfConfigError(
            f"Invalid {name} value: expected number, got '{raw_value}'. "
            f"Set {name} to a numeric value in seconds."
        ) from error
    if value <= 0:
        raise DmfConfigError(f"Invalid {name} value: expected a positive number, got {value}.")
    return value
