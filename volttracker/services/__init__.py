"""Services package."""

from volttracker.services.export import BillSpreadsheetExporter, ExportError
from volttracker.services.image import ImageRejectedError, ReceiptImageService
from volttracker.services.storage import (
    BillStorageInterface,
    ConnectionError,
    GoogleSheetsBillStorage,
    GoogleSheetsClient,
    LocalJsonBillStorage,
    SerializationError,
    StorageError,
)

__all__ = [
    # Export
    "BillSpreadsheetExporter",
    "ExportError",
    # Receipt images
    "ImageRejectedError",
    "ReceiptImageService",
    # Storage services
    "BillStorageInterface",
    "ConnectionError",
    "GoogleSheetsBillStorage",
    "GoogleSheetsClient",
    "LocalJsonBillStorage",
    "SerializationError",
    "StorageError",
]
