"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. The user can view and fix their records directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

The worksheet is a single table keyed by ``id`` (column A), with a
header row of the persisted camelCase field names.

TRADEOFFS:
- No transactions; an upsert is "find row, then update or append"
- Every list is a full fetch of the sheet (fine for personal use)
- A cell holds at most 50,000 characters, which bounds receipt images
"""

from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import retry, stop_after_attempt, wait_exponential

from volttracker.config import get_settings
from volttracker.logger import get_logger
from volttracker.models.bill import ElectricBill
from volttracker.services.storage.interface import (
    BillStorageInterface,
    ConnectionError,
    SerializationError,
    StorageError,
)

logger = get_logger(__name__)


# Column order of the Bills sheet
BILL_COLUMNS = [
    "id",
    "datePurchased",
    "dateInserted",
    "dateFinished",
    "amountPurchased",
    "notes",
    "receiptImage",
]

# Google Sheets hard limit per cell
MAX_CELL_CHARS = 50000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup. Connecting is retried;
    reads and writes are not.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_bills_sheet(self) -> gspread.Worksheet:
        """Get or create the Bills worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.bills_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.bills_sheet_name,
                rows=1000,
                cols=len(BILL_COLUMNS),
            )
            sheet.append_row(BILL_COLUMNS)
            logger.info("bills_sheet_created", title=self._settings.bills_sheet_name)
        return sheet


class GoogleSheetsBillStorage(BillStorageInterface):
    """
    Google Sheets implementation of bill storage.

    One bill per row. Missing optional values are written as "".
    """

    name = "google_sheets"
    max_field_chars = MAX_CELL_CHARS

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _bill_to_row(self, bill: ElectricBill) -> list[str]:
        """Convert a bill to a spreadsheet row."""
        row = [
            str(bill.id),
            bill.date_purchased.isoformat(),
            bill.date_inserted.isoformat(),
            bill.date_finished.isoformat() if bill.date_finished else "",
            str(bill.amount_purchased),
            bill.notes or "",
            bill.receipt_image or "",
        ]
        for column, value in zip(BILL_COLUMNS, row):
            if len(value) > MAX_CELL_CHARS:
                raise SerializationError(
                    f"{column} is too large for a spreadsheet cell "
                    f"({len(value)} > {MAX_CELL_CHARS} characters)"
                )
        return row

    def _row_to_bill(self, row: list[str]) -> ElectricBill:
        """Convert a spreadsheet row to a bill."""
        # Handle trailing empty cells trimmed by the API
        padded = list(row) + [""] * (len(BILL_COLUMNS) - len(row))
        return ElectricBill.from_record(dict(zip(BILL_COLUMNS, padded)))

    def _find_row_index(self, rows: list[list[str]], bill_id: UUID) -> Optional[int]:
        """1-based sheet row number of the bill, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == str(bill_id):
                return idx
        return None

    async def list_bills(self) -> list[ElectricBill]:
        """Fetch every row, newest insertion first."""
        try:
            sheet = self._client.get_bills_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list bills: {e}")

        bills = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                bills.append(self._row_to_bill(row))
            except Exception as e:
                logger.warning("bill_row_skipped", bill_id=row[0], error=str(e))

        bills.sort(key=lambda b: b.date_inserted, reverse=True)
        return bills

    async def upsert_bill(self, bill: ElectricBill) -> bool:
        """Update the row holding this id, or append a new row."""
        row = self._bill_to_row(bill)
        try:
            sheet = self._client.get_bills_sheet()
            all_rows = sheet.get_all_values()
            idx = self._find_row_index(all_rows, bill.id)

            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                end_cell = rowcol_to_a1(idx, len(BILL_COLUMNS))
                sheet.update(
                    values=[row],
                    range_name=f"A{idx}:{end_cell}",
                    value_input_option="RAW",
                )
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save bill: {e}")

    async def delete_bill(self, bill_id: UUID) -> bool:
        """Delete a bill by ID."""
        try:
            sheet = self._client.get_bills_sheet()
            idx = self._find_row_index(sheet.get_all_values(), bill_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete bill: {e}")
