"""Public interface for the dealer-management export adapter."""

from __future__ import annotations

from .fetcher import DirectorySnapshotFetcher, HttpSnapshotFetcher, build_snapshot_fetcher
from .schema import InventoryRow, LoadDetailRow, LoadListRow, ReportHistoryRow
from .translator import build_snapshot, merge_load_sources, synthetic_serial

__all__ = [
    "DirectorySnapshotFetcher",
    "HttpSnapshotFetcher",
    "InventoryRow",
    "LoadDetailRow",
    "LoadListRow",
    "ReportHistoryRow",
    "build_snapshot",
    "build_snapshot_fetcher",
    "merge_load_sources",
    "synthetic_serial",
]
