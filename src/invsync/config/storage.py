"""Where invsync keeps its local files and which database holds the reconciled rows.

``INVSYNC_DATA_DIR`` overrides the data directory (default ``$XDG_DATA_HOME/invsync``).
``INVSYNC_DATABASE_URI`` (or the generic ``DATABASE_URI``) replaces the SQLite file
in that directory with another database.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_flag, optional_env_var

APP_DIR_NAME: Final = "invsync"
DATABASE_FILENAME: Final = "invsync.db"
HTTP_CACHE_FILENAME: Final = "http_cache.db"
DATABASE_URI_VARS: Final = ("INVSYNC_DATABASE_URI", "DATABASE_URI")


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def file_path(self, filename: str, *, ensure: bool = True) -> Path:
        base = self.resolve_data_dir()
        if ensure:
            base.mkdir(parents=True, exist_ok=True)
        return base / filename

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self.file_path(HTTP_CACHE_FILENAME, ensure=ensure)

    def sqlite_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.file_path(DATABASE_FILENAME)}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def get_storage_config() -> StorageConfig:
    configured = optional_env_var("INVSYNC_DATA_DIR")
    if configured is not None:
        return StorageConfig(data_dir=Path(configured))
    xdg_data_home = optional_env_var("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return StorageConfig(data_dir=base / APP_DIR_NAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """Database named by the environment, else the SQLite file in the data directory."""

    echo = env_flag("INVSYNC_DATABASE_ECHO", default=False)
    for name in DATABASE_URI_VARS:
        uri = optional_env_var(name)
        if uri is not None:
            return DatabaseConfig(uri=uri, echo=echo)
    return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri(), echo=echo)
