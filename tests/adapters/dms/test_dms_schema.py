from __future__ import annotations

import pytest
from pydantic import ValidationError

from invsync.adapters.dms.schema import (
    InventoryRow,
    LoadDetailRow,
    ReportHistoryRow,
    normalize_header,
)


def test_normalize_header() -> None:
    assert normalize_header("Serial #") == "serial"
    assert normalize_header("Scanned Date/Time") == "scanneddatetime"


@pytest.mark.parametrize("header", ["Serial #", "Serial#", "SERIALS", "serial"])
def test_inventory_serial_header_variants(header: str) -> None:
    row = InventoryRow.model_validate({header: "VA123456", "Model #": "GTW485ASJWW"})

    assert row.serial == "VA123456"
    assert row.model == "GTW485ASJWW"


def test_cells_are_stripped_text_and_blanks_become_none() -> None:
    row = InventoryRow.model_validate(
        {
            "Serial #": "  VA1  ",
            "Inv Qty": 2,
            "Availability Status": "   ",
            "ORDC": None,
            "Unrelated Column": "ignored",
        }
    )

    assert row.serial == "VA1"
    assert row.quantity == "2"
    assert row.availability_status is None
    assert row.ordc is None
    assert not hasattr(row, "unrelated_column")


def test_first_matching_column_wins() -> None:
    row = InventoryRow.model_validate({"Serial #": "", "SERIALS": "VA2"})

    assert row.serial is None


def test_specific_header_beats_generic_one() -> None:
    row = InventoryRow.model_validate(
        {"Status": "Shipped", "Availability Status": "Available", "Qty": "9", "Inv Qty": "2"}
    )

    assert row.availability_status == "Available"
    assert row.quantity == "2"


def test_report_history_columns() -> None:
    row = ReportHistoryRow.model_validate(
        {
            "Inv Org": "W12",
            "Load Number": "9001",
            "Submitted Date": "03/01/2025",
            "CSO": "C123",
            "Status": "Sold",
            "CSO Status": "Picked",
            "Units": "14",
        }
    )

    assert row.load_number == "9001"
    assert row.cso_status == "Picked"
    assert row.units == "14"


def test_load_detail_uses_report_headers() -> None:
    row = LoadDetailRow.model_validate(
        {"SERIALS": "VA3", "MODELS": "GTD45", "QTY": "1", "LOAD NUMBER": "9001"}
    )

    assert (row.serial, row.model, row.quantity, row.load_number) == ("VA3", "GTD45", "1", "9001")


def test_rows_are_frozen() -> None:
    row = InventoryRow.model_validate({"Serial #": "VA1"})

    with pytest.raises(ValidationError):
        row.serial = "VA2"  # type: ignore[misc]
