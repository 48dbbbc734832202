"""Reconciliation defaults and the location a sync run targets."""

from __future__ import annotations

from dataclasses import dataclass

from invsync.domain.model import DEFAULT_ORPHAN_STATUS

from .env import env_flag, env_int, optional_env_var, require_env_vars

DEFAULT_BATCH_SIZE = 500


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Tunables applied to every bucket reconciliation."""

    batch_size: int = DEFAULT_BATCH_SIZE
    mark_orphans: bool = True
    orphan_status: str = DEFAULT_ORPHAN_STATUS


@dataclass(frozen=True, slots=True)
class LocationConfig:
    """Company/location pair whose inventory is reconciled."""

    company_id: str
    location_id: str
    inv_org: str | None = None


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        batch_size=env_int("INVSYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
        mark_orphans=env_flag("INVSYNC_MARK_ORPHANS", True),  # noqa: FBT003
        orphan_status=optional_env_var("INVSYNC_ORPHAN_STATUS") or DEFAULT_ORPHAN_STATUS,
    )


def get_location_config(
    *,
    company_id: str | None = None,
    location_id: str | None = None,
) -> LocationConfig:
    """Return the target location, preferring explicit values over the environment."""

    names = [
        name
        for name, explicit in (
            ("INVSYNC_COMPANY_ID", company_id),
            ("INVSYNC_LOCATION_ID", location_id),
        )
        if explicit is None
    ]
    values = require_env_vars(names) if names else {}
    return LocationConfig(
        company_id=company_id or values["INVSYNC_COMPANY_ID"],
        location_id=location_id or values["INVSYNC_LOCATION_ID"],
        inv_org=optional_env_var("INVSYNC_INV_ORG"),
    )
