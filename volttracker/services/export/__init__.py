"""Spreadsheet export package."""

from volttracker.services.export.xlsx_exporter import (
    BillSpreadsheetExporter,
    ExportError,
)

__all__ = ["BillSpreadsheetExporter", "ExportError"]
