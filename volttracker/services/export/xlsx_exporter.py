"""
Excel XLSX export.

Writes the record list to a single-sheet workbook the user can
download from the history page.
"""

import io
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from volttracker.logger import get_logger
from volttracker.models.bill import ElectricBill

logger = get_logger(__name__)

SHEET_NAME = "Electricity Bills"
EXPORT_FILENAME = "Electric_Bills_Export.xlsx"
CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADERS = [
    "Date Purchased",
    "Date Inserted",
    "Date Finished",
    "Amount Purchased",
    "Notes",
]
COLUMN_WIDTHS = [15, 15, 15, 20, 30]

ONGOING = "Ongoing"


class ExportError(Exception):
    """The spreadsheet could not be produced."""
    pass


class BillSpreadsheetExporter:
    """Formats bills as an .xlsx workbook."""

    filename = EXPORT_FILENAME
    content_type = CONTENT_TYPE

    def to_row(self, bill: ElectricBill) -> list:
        """Flatten one bill into the five exported columns."""
        return [
            bill.date_purchased.isoformat(),
            bill.date_inserted.isoformat(),
            bill.date_finished.isoformat() if bill.date_finished else ONGOING,
            float(bill.amount_purchased),
            bill.notes or "",
        ]

    def export(self, bills: Sequence[ElectricBill]) -> bytes:
        """
        Build the workbook.

        Returns:
            XLSX file as bytes

        Raises:
            ExportError: If there is nothing to export or writing fails
        """
        if not bills:
            raise ExportError("No data to export!")

        try:
            wb = Workbook()
            ws = wb.active
            ws.title = SHEET_NAME

            header_font = Font(bold=True)
            header_fill = PatternFill(start_color="E0E0E0", end_color="E0E0E0", fill_type="solid")
            for col_idx, label in enumerate(HEADERS, start=1):
                cell = ws.cell(row=1, column=col_idx, value=label)
                cell.font = header_font
                cell.fill = header_fill

            for row_idx, bill in enumerate(bills, start=2):
                for col_idx, value in enumerate(self.to_row(bill), start=1):
                    ws.cell(row=row_idx, column=col_idx, value=value)

            for col_idx, width in enumerate(COLUMN_WIDTHS, start=1):
                ws.column_dimensions[get_column_letter(col_idx)].width = width
            ws.freeze_panes = "A2"

            output = io.BytesIO()
            wb.save(output)
        except Exception as e:
            logger.error("bills_export_failed", error=str(e))
            raise ExportError(f"Failed to export bills: {e}")

        logger.info("bills_exported", count=len(bills))
        return output.getvalue()
