"""
Storage Services Package

Provides the abstract interface and two interchangeable implementations:
a local JSON file and a Google Sheets table.
"""

from volttracker.services.storage.interface import (
    BillStorageInterface,
    ConnectionError,
    SerializationError,
    StorageError,
)
from volttracker.services.storage.local_json import LocalJsonBillStorage
from volttracker.services.storage.google_sheets import (
    GoogleSheetsBillStorage,
    GoogleSheetsClient,
)

__all__ = [
    # Interface
    "BillStorageInterface",
    # Exceptions
    "ConnectionError",
    "SerializationError",
    "StorageError",
    # Implementations
    "GoogleSheetsBillStorage",
    "GoogleSheetsClient",
    "LocalJsonBillStorage",
]
