"""
Bill Store

The single source of truth for the record list shown in the UI.

DESIGN DECISION: The store owns one in-memory list and REPLACES it
wholesale after every successful backend operation, then notifies
subscribers. It never patches the list in place and never mutates it
when the backend reports a failure.

After a write the list is re-read from the backend. For the local
backend that is a read of its in-memory mirror; for Google Sheets it
is a full fetch. The store itself does not know which backend it has.

Writes are not retried. At most one write is expected in flight.
"""

from typing import Callable, Optional
from uuid import UUID

from volttracker.logger import get_logger
from volttracker.models.bill import ElectricBill
from volttracker.services.storage import BillStorageInterface, StorageError

logger = get_logger(__name__)

Listener = Callable[[list[ElectricBill]], None]


class BillStore:
    """
    Observable list of bills backed by a storage implementation.

    Usage:
        store = BillStore(LocalJsonBillStorage())
        await store.load()
        await store.save(bill)
        await store.delete(bill.id)
    """

    def __init__(self, storage: BillStorageInterface):
        self._storage = storage
        self._bills: list[ElectricBill] = []
        self._listeners: list[Listener] = []
        self._loaded = False

    @property
    def storage(self) -> BillStorageInterface:
        return self._storage

    @property
    def bills(self) -> list[ElectricBill]:
        """Snapshot of the last known list (newest first)."""
        return list(self._bills)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def get(self, bill_id: UUID) -> Optional[ElectricBill]:
        """Look up a bill in the current snapshot."""
        for bill in self._bills:
            if bill.id == bill_id:
                return bill
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback for list changes.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, bills: list[ElectricBill]) -> None:
        self._bills = list(bills)
        snapshot = self.bills
        for listener in list(self._listeners):
            listener(snapshot)

    async def load(self) -> list[ElectricBill]:
        """
        Fetch the authoritative list from the backend.

        Raises:
            StorageError: If the backend cannot be read. The current
                list is kept.
        """
        try:
            bills = await self._storage.list_bills()
        except StorageError as e:
            logger.error("bills_load_failed", backend=self._storage.name, error=str(e))
            raise

        self._loaded = True
        self._replace(bills)
        logger.info("bills_loaded", backend=self._storage.name, count=len(bills))
        return self.bills

    async def save(self, bill: ElectricBill) -> bool:
        """
        Insert or replace the bill by id, then refresh the list.

        Raises:
            StorageError: If the write or the refresh fails. The list
                is left unchanged.
        """
        try:
            await self._storage.upsert_bill(bill)
            bills = await self._storage.list_bills()
        except StorageError as e:
            logger.error(
                "bill_save_failed",
                backend=self._storage.name,
                bill_id=str(bill.id),
                error=str(e),
            )
            raise

        self._replace(bills)
        logger.info(
            "bill_saved",
            backend=self._storage.name,
            bill_id=str(bill.id),
            amount=str(bill.amount_purchased),
        )
        return True

    async def delete(self, bill_id: UUID) -> bool:
        """
        Delete the bill with this id, then refresh the list.

        Returns:
            False (without raising) when no bill has this id

        Raises:
            StorageError: If the backend fails. The list is left unchanged.
        """
        try:
            removed = await self._storage.delete_bill(bill_id)
            if not removed:
                logger.info("bill_delete_missing", bill_id=str(bill_id))
                return False
            bills = await self._storage.list_bills()
        except StorageError as e:
            logger.error(
                "bill_delete_failed",
                backend=self._storage.name,
                bill_id=str(bill_id),
                error=str(e),
            )
            raise

        self._replace(bills)
        logger.info("bill_deleted", backend=self._storage.name, bill_id=str(bill_id))
        return True
