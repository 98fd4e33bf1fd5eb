"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for bill persistence.
This allows us to:
1. Keep records in a local JSON file or in a Google Sheets table
2. Use in-memory fakes for testing
3. Pick the backend once, at start-up, without branching elsewhere

The interface is intentionally tiny: list, upsert, delete.
Updates are full replace-by-id - there is no partial patch.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from volttracker.models.bill import ElectricBill


class BillStorageInterface(ABC):
    """
    Abstract interface for bill storage operations.

    Any storage implementation (local file, Google Sheets, etc.)
    must implement these methods.
    """

    #: Human-readable backend name for the settings page
    name: str = "storage"

    #: Longest text a single stored field may hold (None = unlimited)
    max_field_chars: Optional[int] = None

    @abstractmethod
    async def list_bills(self) -> list[ElectricBill]:
        """
        Return every stored bill, newest first.

        Returns:
            The authoritative list as currently persisted

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def upsert_bill(self, bill: ElectricBill) -> bool:
        """
        Insert the bill, or replace the stored bill with the same id.

        Args:
            bill: The complete record to persist

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_bill(self, bill_id: UUID) -> bool:
        """
        Delete a bill by ID.

        Args:
            bill_id: The bill's unique identifier

        Returns:
            True if a bill was removed, False if no bill had this id

        Raises:
            StorageError: If the backend fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class SerializationError(StorageError):
    """Stored data could not be read or written in the record format."""
    pass
