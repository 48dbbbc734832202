from __future__ import annotations

import logging
from pathlib import Path

import pytest

from invsync.config import (
    InvalidConfigurationError,
    MissingConfigurationError,
    configure_logging,
    env_flag,
    env_int,
    get_database_config,
    get_dms_config,
    get_location_config,
    get_storage_config,
    get_sync_config,
    require_env_vars,
)
from invsync.domain.model import DEFAULT_ORPHAN_STATUS


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_env_int_enforces_minimum(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", "0")

    with pytest.raises(InvalidConfigurationError) as exc:
        env_int("EXAMPLE_INT", 5, minimum=1)

    assert exc.value.name == "EXAMPLE_INT"
    monkeypatch.delenv("EXAMPLE_INT")
    assert env_int("EXAMPLE_INT", 5, minimum=1) == 5


def test_env_int_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", "lots")

    with pytest.raises(InvalidConfigurationError):
        env_int("EXAMPLE_INT", 5)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("yes", True), ("ON", True), ("0", False), ("false", False)],
)
def test_env_flag_parses_common_spellings(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", raw)

    assert env_flag("EXAMPLE_FLAG", not expected) is expected


def test_env_flag_rejects_unknown_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", "maybe")

    with pytest.raises(InvalidConfigurationError):
        env_flag("EXAMPLE_FLAG", True)  # noqa: FBT003


def test_sync_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVSYNC_BATCH_SIZE", "25")
    monkeypatch.setenv("INVSYNC_MARK_ORPHANS", "no")
    monkeypatch.delenv("INVSYNC_ORPHAN_STATUS", raising=False)

    config = get_sync_config()

    assert config.batch_size == 25
    assert config.mark_orphans is False
    assert config.orphan_status == DEFAULT_ORPHAN_STATUS


def test_location_config_prefers_explicit_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("INVSYNC_COMPANY_ID", raising=False)
    monkeypatch.setenv("INVSYNC_LOCATION_ID", "store-9")

    config = get_location_config(company_id="acme")

    assert config.company_id == "acme"
    assert config.location_id == "store-9"


def test_location_config_requires_company(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("INVSYNC_COMPANY_ID", raising=False)
    monkeypatch.delenv("INVSYNC_LOCATION_ID", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        get_location_config()

    assert "INVSYNC_COMPANY_ID" in str(exc.value)


def test_dms_config_url_builds_resilience(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("INVSYNC_DATA_DIR", str(tmp_path))

    config = get_dms_config(snapshot_url="https://dms.example.com/exports")

    assert config.snapshot_url == "https://dms.example.com/exports/"
    assert config.snapshot_dir is None
    assert config.resilience is not None
    assert config.resilience.base_url == config.snapshot_url
    assert config.resilience.cache is not None
    assert config.resilience.cache.sqlite_path == str(tmp_path.resolve() / "http_cache.db")


def test_dms_config_falls_back_to_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DMS_SNAPSHOT_URL", raising=False)
    monkeypatch.setenv("DMS_SNAPSHOT_DIR", str(tmp_path))

    config = get_dms_config()

    assert config.snapshot_dir == tmp_path
    assert config.snapshot_url is None


def test_dms_config_requires_a_source(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DMS_SNAPSHOT_URL", raising=False)
    monkeypatch.delenv("DMS_SNAPSHOT_DIR", raising=False)

    with pytest.raises(MissingConfigurationError):
        get_dms_config()


def test_database_config_defaults_to_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.delenv("INVSYNC_DATABASE_URI", raising=False)
    monkeypatch.setenv("INVSYNC_DATA_DIR", str(tmp_path / "data"))

    config = get_database_config()

    expected = (tmp_path / "data").resolve() / "invsync.db"
    assert config.uri == f"sqlite+pysqlite:///{expected}"
    assert expected.parent.is_dir()


def test_database_config_prefers_explicit_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("INVSYNC_DATABASE_URI", raising=False)
    monkeypatch.delenv("INVSYNC_DATABASE_ECHO", raising=False)
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://db/inventory")

    config = get_database_config()

    assert config.uri == "postgresql+psycopg://db/inventory"
    assert config.echo is False


def test_invsync_database_uri_wins_over_generic_one(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://db/other")
    monkeypatch.setenv("INVSYNC_DATABASE_URI", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("INVSYNC_DATABASE_ECHO", "yes")

    config = get_database_config()

    assert config.uri == "sqlite+pysqlite:///:memory:"
    assert config.echo is True


def test_storage_config_uses_xdg_data_home(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("INVSYNC_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    config = get_storage_config()

    assert config.resolve_data_dir() == (tmp_path / "invsync").resolve()
    assert config.http_cache_path(ensure=False).name == "http_cache.db"


def test_configure_logging_quiets_httpx() -> None:
    configure_logging(level=logging.INFO, force=True)

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
