"""Translate validated export rows into snapshot DTOs."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from invsync.domain.loads import is_on_floor
from invsync.domain.snapshot import ExternalItem, LoadInfo, LoadItem, ParseWarning, Snapshot

from .schema import InventoryRow, LoadDetailRow, LoadListRow, ReportHistoryRow

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from invsync.domain.model import InventoryBucket

    from .schema import RowInput

log = getLogger(__name__)

SYNTHETIC_TOKEN_LENGTH = 24
_TOKEN_STRIP = re.compile(r"[^A-Z0-9]+")


def synthetic_serial(bucket: InventoryBucket, parts: Iterable[str | None], index: int) -> str:
    """Stable stand-in serial for an unserialized line, e.g. ``FG-NS:GTW485_X1:3``."""

    tokens = [
        _TOKEN_STRIP.sub("", part.upper())[:SYNTHETIC_TOKEN_LENGTH] for part in parts if part
    ]
    joined = "_".join(token for token in tokens if token) or "UNKNOWN"
    return f"{bucket.value}-NS:{joined}:{index}"


@dataclass(slots=True)
class _WarningLog:
    """Collects parse warnings for one snapshot."""

    warnings: list[ParseWarning] = field(default_factory=list[ParseWarning])

    def add(
        self, source: str, row_index: int, field_name: str, raw: str | None, message: str
    ) -> None:
        self.warnings.append(
            ParseWarning(
                source=source,
                row_index=row_index,
                field=field_name,
                raw_value=raw,
                message=message,
            )
        )

    def parse_int(
        self,
        raw: str | None,
        *,
        source: str,
        row_index: int,
        field_name: str,
        required: bool = False,
    ) -> int | None:
        """Integer value of ``raw``.

        Returns ``None`` with a warning when ``raw`` is not a whole number, or when
        it is missing and ``required`` is set.
        """

        if raw is None:
            if required:
                self.add(source, row_index, field_name, None, "missing")
            return None
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            number = float(raw.replace(",", ""))
        except ValueError:
            number = math.nan
        if math.isfinite(number) and number.is_integer():
            return int(number)
        if math.isfinite(number):
            self.add(source, row_index, field_name, raw, "not a whole number")
            return None
        self.add(source, row_index, field_name, raw, "not a number")
        return None


def build_snapshot(
    bucket: InventoryBucket,
    *,
    inventory: Sequence[RowInput],
    load_list: Sequence[RowInput] | None = None,
    report_history: Sequence[RowInput] | None = None,
    load_details: Mapping[str, Sequence[RowInput]] | None = None,
) -> Snapshot:
    """Build the snapshot of ``bucket`` from raw export rows.

    ``load_list`` and ``report_history`` both ``None`` means the bucket exports no
    load data. Serials listed only on on-floor loads are appended to the items.
    """

    warnings = _WarningLog()
    prefix = bucket.value
    items: list[ExternalItem] = []
    synthetic_index = 0
    for index, raw_row in enumerate(inventory):
        row = InventoryRow.model_validate(raw_row)
        serial = row.serial
        synthetic = serial is None
        if serial is None:
            synthetic_index += 1
            serial = synthetic_serial(bucket, (row.model, row.ordc), synthetic_index)
            warnings.add(prefix, index, "serial", None, f"missing serial; using {serial}")
        items.append(
            ExternalItem(
                serial=serial,
                model=row.model or "",
                quantity=warnings.parse_int(
                    row.quantity,
                    source=prefix,
                    row_index=index,
                    field_name="quantity",
                    required=True,
                ),
                availability_status=row.availability_status,
                availability_message=row.availability_message,
                ordc=row.ordc,
                load_number=row.load_number,
                synthetic_serial=synthetic,
            )
        )

    if load_list is None and report_history is None:
        return Snapshot(bucket=bucket, items=tuple(items), warnings=tuple(warnings.warnings))

    loads = merge_load_sources(
        load_list or (), report_history or (), warnings=warnings, prefix=prefix
    )
    load_items = {
        load_number: _load_items(load_number, rows, bucket=bucket, warnings=warnings)
        for load_number, rows in (load_details or {}).items()
    }
    items.extend(_load_only_items(items, loads, load_items))
    return Snapshot(
        bucket=bucket,
        items=tuple(items),
        loads=tuple(loads),
        load_items=load_items,
        warnings=tuple(warnings.warnings),
    )


def merge_load_sources(
    load_list: Iterable[RowInput],
    report_history: Iterable[RowInput],
    *,
    warnings: _WarningLog | None = None,
    prefix: str = "",
) -> list[LoadInfo]:
    """Merge the load list with the report history.

    Report history is authoritative for status, CSO fields, units and submitted
    date; the load list contributes notes and the scan timestamp, and stands in
    for loads the history does not mention.
    """

    warning_log = warnings or _WarningLog()
    listed: dict[str, tuple[int, LoadListRow]] = {}
    for index, raw in enumerate(load_list):
        row = LoadListRow.model_validate(raw)
        if row.load_number:
            listed.setdefault(row.load_number, (index, row))
    history: dict[str, tuple[int, ReportHistoryRow]] = {}
    for index, raw in enumerate(report_history):
        row = ReportHistoryRow.model_validate(raw)
        if row.load_number:
            history.setdefault(row.load_number, (index, row))

    merged: list[LoadInfo] = []
    for load_number, (index, hist) in history.items():
        listed_row = listed[load_number][1] if load_number in listed else None
        merged.append(
            LoadInfo(
                load_number=load_number,
                status=hist.status,
                cso_status=hist.cso_status,
                units=warning_log.parse_int(
                    hist.units,
                    source=f"{prefix}ReportHistoryData",
                    row_index=index,
                    field_name="units",
                ),
                notes=listed_row.notes if listed_row else None,
                submitted_date=hist.submitted_date,
                cso=hist.cso,
                scanned_at=listed_row.scanned_at if listed_row else None,
                inv_org=hist.inv_org,
            )
        )
    for load_number, (index, listed_row) in listed.items():
        if load_number in history:
            continue
        merged.append(
            LoadInfo(
                load_number=load_number,
                status=listed_row.status,
                units=warning_log.parse_int(
                    listed_row.units,
                    source=f"{prefix}LoadData",
                    row_index=index,
                    field_name="units",
                ),
                notes=listed_row.notes,
                scanned_at=listed_row.scanned_at,
            )
        )
    return merged


def _load_items(
    load_number: str,
    rows: Sequence[RowInput],
    *,
    bucket: InventoryBucket,
    warnings: _WarningLog,
) -> tuple[LoadItem, ...]:
    source = f"{bucket.value}LoadDetail"
    items: list[LoadItem] = []
    missing = 0
    for index, raw in enumerate(rows):
        row = LoadDetailRow.model_validate(raw)
        serial = row.serial
        if serial is None:
            missing += 1
            serial = synthetic_serial(bucket, (load_number, row.model, row.ordc), missing)
            warnings.add(source, index, "serial", None, f"missing serial; using {serial}")
        items.append(
            LoadItem(
                load_number=row.load_number or load_number,
                serial=serial,
                model=row.model,
                quantity=warnings.parse_int(
                    row.quantity,
                    source=source,
                    row_index=index,
                    field_name="quantity",
                    required=True,
                ),
                ordc=row.ordc,
                synthetic_serial=row.serial is None,
            )
        )
    return tuple(items)


def _load_only_items(
    items: Sequence[ExternalItem],
    loads: Iterable[LoadInfo],
    load_items: Mapping[str, tuple[LoadItem, ...]],
) -> list[ExternalItem]:
    known = {item.serial for item in items}
    extra: list[ExternalItem] = []
    for load in loads:
        if not is_on_floor(load):
            continue
        for load_item in load_items.get(load.load_number, ()):
            if load_item.serial in known:
                continue
            known.add(load_item.serial)
            extra.append(
                ExternalItem(
                    serial=load_item.serial,
                    model=load_item.model or "",
                    quantity=load_item.quantity,
                    ordc=load_item.ordc,
                    load_number=load.load_number,
                    synthetic_serial=load_item.synthetic_serial,
                )
            )
    if extra:
        log.info("Added %s serials found only on load detail lists", len(extra))
    return extra
