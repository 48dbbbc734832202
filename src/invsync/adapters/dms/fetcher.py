"""Snapshot fetchers reading dealer-management exports over HTTP or from disk.

Both fetchers expect the same layout, relative to a base URL or directory:

- ``{PREFIX}.json``: master inventory rows (required)
- ``{PREFIX}LoadData.json``: load list rows
- ``{PREFIX}ReportHistoryData.json``: load report history rows
- ``{PREFIX}LoadDetail/{load}.json``: rows of one load

``PREFIX`` is the bucket value (``ASIS``, ``LocalStock`` ...). Missing load files
mean the bucket carries no load data.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, cast
from urllib.parse import quote

import httpx

from invsync.adapters.http_resilience import ResilientClient
from invsync.config.dms import DmsConfig, get_dms_config
from invsync.domain.loads import is_on_floor
from invsync.domain.ports.fetching import FetchError, SnapshotFetcher

from .translator import build_snapshot, merge_load_sources

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from invsync.config.http_resilience import ResilienceConfig
    from invsync.domain.model import InventoryBucket, SyncScope
    from invsync.domain.snapshot import Snapshot

    from .schema import RowInput

log = getLogger(__name__)

type Rows = list[RowInput]


def inventory_file(bucket: InventoryBucket) -> str:
    return f"{bucket.value}.json"


def load_list_file(bucket: InventoryBucket) -> str:
    return f"{bucket.value}LoadData.json"


def report_history_file(bucket: InventoryBucket) -> str:
    return f"{bucket.value}ReportHistoryData.json"


def load_detail_file(bucket: InventoryBucket, load_number: str) -> str:
    return f"{bucket.value}LoadDetail/{quote(load_number, safe='')}.json"


def _as_rows(payload: object, *, source: str) -> Rows:
    if not isinstance(payload, list):
        raise FetchError(f"Expected a list of rows in {source}", source=source)
    rows = cast(list[object], payload)
    if not all(isinstance(row, dict) for row in rows):
        raise FetchError(f"Expected every row in {source} to be an object", source=source)
    return cast("Rows", rows)


def _floor_load_numbers(
    load_list: Sequence[RowInput] | None, history: Sequence[RowInput] | None
) -> list[str]:
    loads = merge_load_sources(load_list or (), history or ())
    return [load.load_number for load in loads if is_on_floor(load)]


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpSnapshotFetcher:
    """Fetch exports from an HTTP server publishing the snapshot layout."""

    config: DmsConfig = field(default_factory=get_dms_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __post_init__(self) -> None:
        if self.config.snapshot_url is None or self.config.resilience is None:
            raise ValueError("HttpSnapshotFetcher requires a snapshot URL")

    def __call__(self, *, scope: SyncScope, bucket: InventoryBucket) -> Snapshot:
        log.info(
            "Fetching %s snapshot for %s/%s from %s",
            bucket,
            scope.company_id,
            scope.location_id,
            self.config.snapshot_url,
        )
        return asyncio.run(self._fetch_async(bucket))

    async def _fetch_async(self, bucket: InventoryBucket) -> Snapshot:
        resilience = cast("ResilienceConfig", self.config.resilience)
        async with self.client_factory(resilience) as client:
            inventory = await self._get_rows(client, inventory_file(bucket), required=True)
            load_list = await self._get_rows(client, load_list_file(bucket))
            history = await self._get_rows(client, report_history_file(bucket))

            load_details: dict[str, Rows] = {}
            if load_list is not None or history is not None:
                for load_number in _floor_load_numbers(load_list, history):
                    rows = await self._get_rows(client, load_detail_file(bucket, load_number))
                    if rows is None:
                        log.warning("No detail export for %s load %s", bucket, load_number)
                        continue
                    load_details[load_number] = rows

        return build_snapshot(
            bucket,
            inventory=inventory or [],
            load_list=load_list,
            report_history=history,
            load_details=load_details,
        )

    async def _get_rows(
        self,
        client: ResilientClient,
        name: str,
        *,
        required: bool = False,
    ) -> Rows | None:
        url = f"{self.config.snapshot_url}{name}"
        try:
            response = await client.get(url)
            if response.status_code == httpx.codes.NOT_FOUND and not required:
                return None
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", source=url) from exc
        except json.JSONDecodeError as exc:
            raise FetchError(f"Invalid JSON in {url}: {exc}", source=url) from exc
        return _as_rows(payload, source=url)


@dataclass(slots=True)
class DirectorySnapshotFetcher:
    """Read exports from a local directory using the snapshot layout."""

    directory: Path

    def __call__(self, *, scope: SyncScope, bucket: InventoryBucket) -> Snapshot:
        log.info(
            "Reading %s snapshot for %s/%s from %s",
            bucket,
            scope.company_id,
            scope.location_id,
            self.directory,
        )
        inventory = self._read_rows(inventory_file(bucket), required=True)
        load_list = self._read_rows(load_list_file(bucket))
        history = self._read_rows(report_history_file(bucket))

        load_details: dict[str, Rows] = {}
        if load_list is not None or history is not None:
            for load_number in _floor_load_numbers(load_list, history):
                rows = self._read_rows(load_detail_file(bucket, load_number))
                if rows is None:
                    log.warning("No detail export for %s load %s", bucket, load_number)
                    continue
                load_details[load_number] = rows

        return build_snapshot(
            bucket,
            inventory=inventory or [],
            load_list=load_list,
            report_history=history,
            load_details=load_details,
        )

    def _read_rows(self, name: str, *, required: bool = False) -> Rows | None:
        path = self.directory / name
        if not path.exists():
            if required:
                raise FetchError(f"Snapshot file {path} does not exist", source=str(path))
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise FetchError(f"Failed to read {path}: {exc}", source=str(path)) from exc
        return _as_rows(payload, source=str(path))


def build_snapshot_fetcher(config: DmsConfig | None = None) -> SnapshotFetcher:
    """Pick the fetcher matching ``config`` (HTTP when a URL is configured)."""

    active = config or get_dms_config()
    if active.snapshot_url is not None:
        return HttpSnapshotFetcher(config=active)
    if active.snapshot_dir is not None:
        return DirectorySnapshotFetcher(directory=active.snapshot_dir)
    raise ValueError("DMS configuration names neither a snapshot URL nor a directory")


if TYPE_CHECKING:
    _http_fetcher_check: SnapshotFetcher = HttpSnapshotFetcher()
    _directory_fetcher_check: SnapshotFetcher = DirectorySnapshotFetcher(Path())
