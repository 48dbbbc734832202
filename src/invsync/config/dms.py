"""Dealer-management snapshot source configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import env_float, optional_env_var
from .errors import MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig
from .storage import get_storage_config

DMS_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class DmsConfig:
    """Where snapshot exports are read from.

    Exactly one of ``snapshot_url`` (HTTP export server) or ``snapshot_dir``
    (exports on local disk) is set.
    """

    snapshot_url: str | None = None
    snapshot_dir: Path | None = None
    resilience: ResilienceConfig | None = None


def get_dms_config(
    *,
    snapshot_url: str | None = None,
    snapshot_dir: str | Path | None = None,
    resilience: ResilienceConfig | None = None,
) -> DmsConfig:
    if snapshot_url is None and snapshot_dir is None:
        snapshot_url = optional_env_var("DMS_SNAPSHOT_URL")
        snapshot_dir = optional_env_var("DMS_SNAPSHOT_DIR")

    if snapshot_url is not None:
        cache_path = get_storage_config().http_cache_path()
        return DmsConfig(
            snapshot_url=snapshot_url.rstrip("/") + "/",
            resilience=resilience
            or ResilienceConfig(
                name="dms",
                base_url=snapshot_url.rstrip("/") + "/",
                timeout_seconds=env_float("DMS_TIMEOUT_SECONDS", DMS_TIMEOUT_SECONDS),
                ratelimit=RateLimit(max_calls=8, per_seconds=1.0),
                cache=CacheConfig(backend="sqlite", sqlite_path=str(cache_path)),
            ),
        )
    if snapshot_dir is not None:
        return DmsConfig(snapshot_dir=Path(snapshot_dir))
    raise MissingConfigurationError(
        "Missing configuration for: DMS_SNAPSHOT_DIR or DMS_SNAPSHOT_URL"
    )
