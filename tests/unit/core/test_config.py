"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import DmfConfig
from core.errors import DmfConfigError


def test_from_env_derives_log_dir_from_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    """Log directory should default to <data_dir>/log."""
    monkeypatch.setenv("DMF_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DMF_LOG_DIR", raising=False)

    config = DmfConfig.from_env()

    assert config.log_dir == tmp_path / "log"


def test_from_env_raises_for_invalid_port(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a non-numeric database port."""
    monkeypatch.setenv("DMF_DB_PORT", "not-a-number")

    with pytest.raises(DmfConfigError):
        DmfConfig.from_env()

    assert True


def test_from_env_raises_for_zero_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    """At least one download attempt is required."""
    monkeypatch.setenv("DMF_HTTP_RETRIES", "0")

    with pytest.raises(DmfConfigError):
        DmfConfig.from_env()

    assert True


def test_database_url_for_server_driver(monkeypatch: pytest.MonkeyPatch) -> None:
    """Server drivers should combine host, port, credentials and name."""
    monkeypatch.setenv("DMF_DB_DRIVER", "postgresql+psycopg")
    monkeypatch.setenv("DMF_DB_HOST", "db.internal")
    monkeypatch.setenv("DMF_DB_PORT", "5433")
    monkeypatch.setenv("DMF_DB_USER", "loader")
    monkeypatch.setenv("DMF_DB_PASSWORD", "pw")

    url = DmfConfig.from_env().database_url("ssn")

    assert url.render_as_string(hide_password=False) == (
        "postgresql+psycopg://loader:pw@db.internal:5433/ssn"
    )


def test_database_url_for_sqlite_uses_name_as_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """SQLite drivers should treat the database name as a file path."""
    monkeypatch.setenv("DMF_DB_DRIVER", "sqlite")

    url = DmfConfig.from_env().database_url("/tmp/ssn.db")

    assert str(url) == "sqlite:////tmp/ssn.db"
