"""Tests for the Excel export."""

import io
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from volttracker.models.bill import ElectricBill
from volttracker.services.export import BillSpreadsheetExporter, ExportError
from volttracker.services.export.xlsx_exporter import HEADERS, SHEET_NAME


@pytest.fixture
def bills():
    return [
        ElectricBill(
            date_purchased=date(2024, 2, 1),
            date_inserted=date(2024, 2, 2),
            amount_purchased=Decimal("7000"),
            notes="Harmattan",
        ),
        ElectricBill(
            date_purchased=date(2024, 1, 1),
            date_inserted=date(2024, 1, 1),
            date_finished=date(2024, 1, 31),
            amount_purchased=Decimal("5000.50"),
        ),
    ]


class TestBillSpreadsheetExporter:
    """Tests for workbook layout."""

    def test_export_layout(self, bills):
        content = BillSpreadsheetExporter().export(bills)
        wb = load_workbook(io.BytesIO(content))

        assert wb.sheetnames == [SHEET_NAME]
        ws = wb[SHEET_NAME]
        rows = list(ws.iter_rows(values_only=True))

        assert list(rows[0]) == HEADERS
        assert list(rows[1]) == ["2024-02-01", "2024-02-02", "Ongoing", 7000.0, "Harmattan"]
        assert list(rows[2][:4]) == ["2024-01-01", "2024-01-01", "2024-01-31", 5000.5]
        assert rows[2][4] in (None, "")
        assert ws.max_row == 3

    def test_header_is_bold_and_columns_sized(self, bills):
        ws = load_workbook(io.BytesIO(BillSpreadsheetExporter().export(bills)))[SHEET_NAME]
        assert ws["A1"].font.bold
        assert ws.column_dimensions["A"].width == 15
        assert ws.column_dimensions["E"].width == 30

    def test_empty_list_raises(self):
        with pytest.raises(ExportError, match="No data to export!"):
            BillSpreadsheetExporter().export([])

    def test_filename(self):
        assert BillSpreadsheetExporter.filename == "Electric_Bills_Export.xlsx"
