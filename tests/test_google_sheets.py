"""Tests for the Google Sheets backend (worksheet mocked)."""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import gspread
import pytest

from volttracker.config import get_settings
from volttracker.models.bill import ElectricBill
from volttracker.services.image import ReceiptImageService
from volttracker.services.storage import (
    GoogleSheetsBillStorage,
    GoogleSheetsClient,
    SerializationError,
    StorageError,
)
from volttracker.services.storage import google_sheets
from volttracker.services.storage.google_sheets import BILL_COLUMNS, MAX_CELL_CHARS


def make_bill(amount, inserted, finished=None):
    return ElectricBill(
        date_purchased=inserted,
        date_inserted=inserted,
        date_finished=finished,
        amount_purchased=Decimal(str(amount)),
    )


def row_for(bill):
    return [
        str(bill.id),
        bill.date_purchased.isoformat(),
        bill.date_inserted.isoformat(),
        bill.date_finished.isoformat() if bill.date_finished else "",
        str(bill.amount_purchased),
        bill.notes or "",
        "",
    ]


@pytest.fixture
def sheet():
    worksheet = MagicMock()
    worksheet.get_all_values.return_value = [BILL_COLUMNS]
    return worksheet


@pytest.fixture
def storage(sheet):
    client = MagicMock()
    client.get_bills_sheet.return_value = sheet
    return GoogleSheetsBillStorage(client)


class TestGoogleSheetsBillStorage:
    """Tests for row mapping and upsert/delete."""

    def test_list_sorts_newest_first(self, storage, sheet):
        old = make_bill(100, date(2024, 1, 1), finished=date(2024, 1, 20))
        new = make_bill(200, date(2024, 3, 1))
        sheet.get_all_values.return_value = [BILL_COLUMNS, row_for(old), row_for(new)]

        bills = asyncio.run(storage.list_bills())
        assert [b.id for b in bills] == [new.id, old.id]
        assert bills[1].date_finished == date(2024, 1, 20)
        assert bills[0].date_finished is None

    def test_list_handles_trimmed_rows(self, storage, sheet):
        bill = make_bill(100, date(2024, 1, 1))
        sheet.get_all_values.return_value = [BILL_COLUMNS, row_for(bill)[:5]]

        bills = asyncio.run(storage.list_bills())
        assert bills[0].id == bill.id
        assert bills[0].notes is None

    def test_list_skips_malformed_rows(self, storage, sheet):
        good = make_bill(100, date(2024, 1, 1))
        bad = [str(uuid4()), "not-a-date", "2024-01-01", "", "abc", "", ""]
        sheet.get_all_values.return_value = [BILL_COLUMNS, bad, row_for(good), []]

        bills = asyncio.run(storage.list_bills())
        assert [b.id for b in bills] == [good.id]

    def test_upsert_appends_new_bill(self, storage, sheet):
        bill = make_bill(100, date(2024, 1, 1))
        assert asyncio.run(storage.upsert_bill(bill)) is True

        sheet.append_row.assert_called_once()
        row = sheet.append_row.call_args[0][0]
        assert row[0] == str(bill.id)
        assert row[4] == "100.00"
        sheet.update.assert_not_called()

    def test_upsert_updates_existing_row(self, storage, sheet):
        other = make_bill(50, date(2023, 12, 1))
        bill = make_bill(100, date(2024, 1, 1))
        sheet.get_all_values.return_value = [BILL_COLUMNS, row_for(other), row_for(bill)]

        edited = bill.model_copy(update={"date_finished": date(2024, 1, 30)})
        asyncio.run(storage.upsert_bill(edited))

        sheet.append_row.assert_not_called()
        kwargs = sheet.update.call_args.kwargs
        assert kwargs["range_name"] == "A3:G3"
        assert kwargs["values"][0][3] == "2024-01-30"

    def test_delete_existing_row(self, storage, sheet):
        bill = make_bill(100, date(2024, 1, 1))
        sheet.get_all_values.return_value = [BILL_COLUMNS, row_for(bill)]

        assert asyncio.run(storage.delete_bill(bill.id)) is True
        sheet.delete_rows.assert_called_once_with(2)

    def test_delete_unknown_id(self, storage, sheet):
        assert asyncio.run(storage.delete_bill(uuid4())) is False
        sheet.delete_rows.assert_not_called()

    def test_oversized_image_is_rejected(self, storage, sheet):
        bill = make_bill(100, date(2024, 1, 1)).model_copy(
            update={"receipt_image": "data:image/jpeg;base64," + "A" * MAX_CELL_CHARS}
        )
        with pytest.raises(SerializationError):
            asyncio.run(storage.upsert_bill(bill))
        sheet.append_row.assert_not_called()

    def test_api_failure_becomes_storage_error(self, storage, sheet):
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError):
            asyncio.run(storage.list_bills())
        with pytest.raises(StorageError):
            asyncio.run(storage.upsert_bill(make_bill(1, date(2024, 1, 1))))

    def test_full_size_receipt_photo_saves(self, storage, sheet, receipt_photo):
        service = ReceiptImageService(max_chars=storage.max_field_chars)
        receipt = service.prepare(receipt_photo, "image/jpeg")
        bill = make_bill(5000, date(2024, 6, 1)).model_copy(
            update={"receipt_image": receipt.data_url}
        )

        assert asyncio.run(storage.upsert_bill(bill)) is True

        row = sheet.append_row.call_args[0][0]
        assert row[0] == str(bill.id)
        assert row[BILL_COLUMNS.index("receiptImage")] == receipt.data_url


@pytest.fixture
def sheets_env(tmp_path, monkeypatch):
    credentials = tmp_path / "service-account.json"
    credentials.write_text("{}")
    monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
    monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "spreadsheet-123")
    get_settings.cache_clear()


@pytest.fixture
def spreadsheet(monkeypatch, sheets_env):
    book = MagicMock()
    gc = MagicMock()
    gc.open_by_key.return_value = book
    monkeypatch.setattr(
        google_sheets.Credentials,
        "from_service_account_file",
        MagicMock(return_value=MagicMock()),
    )
    monkeypatch.setattr(google_sheets.gspread, "authorize", MagicMock(return_value=gc))
    return book


class TestGoogleSheetsClient:
    """Tests for spreadsheet and worksheet lookup."""

    def test_existing_bills_sheet_is_used(self, spreadsheet):
        assert GoogleSheetsClient().get_bills_sheet() is spreadsheet.worksheet.return_value
        spreadsheet.worksheet.assert_called_once_with("Bills")
        spreadsheet.add_worksheet.assert_not_called()

    def test_missing_bills_sheet_is_created_with_header(self, spreadsheet):
        spreadsheet.worksheet.side_effect = gspread.WorksheetNotFound("Bills")
        created = spreadsheet.add_worksheet.return_value

        assert GoogleSheetsClient().get_bills_sheet() is created
        spreadsheet.add_worksheet.assert_called_once_with(
            title="Bills",
            rows=1000,
            cols=len(BILL_COLUMNS),
        )
        created.append_row.assert_called_once_with(BILL_COLUMNS)
