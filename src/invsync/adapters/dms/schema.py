"""Pydantic models describing dealer-management export rows.

Exports come from spreadsheets whose column headers drift ("Serial #", "Serial#",
"SERIALS"). Every model matches headers after normalizing them to lower-case
alphanumerics, and keeps cell values as stripped text; numeric parsing happens in
the translator so bad cells can be reported instead of rejected.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import ClassVar, cast

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(header: str) -> str:
    return _NON_ALNUM.sub("", header.lower())


def _cell_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class DmsRow(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    # field name -> accepted header spellings, most specific first
    header_aliases: ClassVar[Mapping[str, tuple[str, ...]]] = {}

    @model_validator(mode="before")
    @classmethod
    def _match_headers(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        lookup: dict[str, tuple[str, int]] = {}
        for name, aliases in cls.header_aliases.items():
            for rank, alias in enumerate((name, *aliases)):
                lookup.setdefault(normalize_header(alias), (name, rank))
        data: dict[str, object] = {}
        ranks: dict[str, int] = {}
        for key, cell in cast(Mapping[object, object], value).items():
            match = lookup.get(normalize_header(str(key)))
            if match is None:
                continue
            name, rank = match
            # the earliest alias wins; among equal spellings the first column, blank or not
            if name not in ranks or rank < ranks[name]:
                data[name] = cell
                ranks[name] = rank
        return data

    _normalize_cells = field_validator("*", mode="before")(_cell_text)


class InventoryRow(DmsRow):
    """Master inventory line (``{PREFIX}.json``)."""

    header_aliases: ClassVar[Mapping[str, tuple[str, ...]]] = {
        "serial": ("Serial #", "Serial#", "SERIALS"),
        "model": ("Model #", "Model#", "MODELS"),
        "quantity": ("Inv Qty", "InvQty", "Qty"),
        "availability_status": ("Availability Status", "Status"),
        "availability_message": ("Availability Message",),
        "ordc": ("ORDC",),
        "load_number": ("Load Number", "LOAD NUMBER"),
    }

    serial: str | None = None
    model: str | None = None
    quantity: str | None = None
    availability_status: str | None = None
    availability_message: str | None = None
    ordc: str | None = None
    load_number: str | None = None


class LoadListRow(DmsRow):
    """One row of the load list (``{PREFIX}LoadData.json``)."""

    header_aliases: ClassVar[Mapping[str, tuple[str, ...]]] = {
        "load_number": ("Load Number",),
        "units": ("Units",),
        "notes": ("Notes",),
        "scanned_at": ("Scanned Date/Time",),
        "status": ("Status",),
    }

    load_number: str | None = None
    units: str | None = None
    notes: str | None = None
    scanned_at: str | None = None
    status: str | None = None


class ReportHistoryRow(DmsRow):
    """One row of the load report history (``{PREFIX}ReportHistoryData.json``)."""

    header_aliases: ClassVar[Mapping[str, tuple[str, ...]]] = {
        "inv_org": ("Inv Org",),
        "load_number": ("Load Number",),
        "submitted_date": ("Submitted Date",),
        "cso": ("CSO",),
        "status": ("Status",),
        "cso_status": ("CSO Status",),
        "units": ("Units",),
    }

    inv_org: str | None = None
    load_number: str | None = None
    submitted_date: str | None = None
    cso: str | None = None
    status: str | None = None
    cso_status: str | None = None
    units: str | None = None


class LoadDetailRow(DmsRow):
    """A serial listed on one load (``{PREFIX}LoadDetail/{load}.json``)."""

    header_aliases: ClassVar[Mapping[str, tuple[str, ...]]] = {
        "serial": ("SERIALS", "Serial #", "Serial#"),
        "model": ("MODELS", "Model #", "Model#"),
        "quantity": ("QTY", "Inv Qty"),
        "ordc": ("ORDC",),
        "load_number": ("LOAD NUMBER", "Load Number"),
    }

    serial: str | None = None
    model: str | None = None
    quantity: str | None = None
    ordc: str | None = None
    load_number: str | None = None


RowInput = Mapping[str, object]
