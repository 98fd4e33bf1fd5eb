"""Tests for BillStore and the local JSON backend."""

import asyncio
import json
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from volttracker.models.bill import ElectricBill
from volttracker.services.storage import (
    BillStorageInterface,
    LocalJsonBillStorage,
    SerializationError,
    StorageError,
)
from volttracker.store import BillStore


def make_bill(amount, inserted, finished=None):
    return ElectricBill(
        date_purchased=inserted,
        date_inserted=inserted,
        date_finished=finished,
        amount_purchased=Decimal(str(amount)),
    )


class FailingStorage(BillStorageInterface):
    """Backend whose writes always fail."""

    name = "failing"

    def __init__(self, bills):
        self._bills = list(bills)

    async def list_bills(self):
        return list(self._bills)

    async def upsert_bill(self, bill):
        raise StorageError("backend unavailable")

    async def delete_bill(self, bill_id):
        raise StorageError("backend unavailable")


@pytest.fixture
def storage(tmp_path):
    return LocalJsonBillStorage(tmp_path / "bills.json")


@pytest.fixture
def store(storage):
    return BillStore(storage)


class TestLocalJsonBillStorage:
    """Tests for the file-backed backend."""

    def test_missing_file_is_empty(self, storage):
        assert asyncio.run(storage.list_bills()) == []

    def test_new_bills_are_prepended(self, storage):
        first = make_bill(100, date(2024, 1, 1))
        second = make_bill(200, date(2024, 2, 1))
        asyncio.run(storage.upsert_bill(first))
        asyncio.run(storage.upsert_bill(second))

        bills = asyncio.run(storage.list_bills())
        assert [b.id for b in bills] == [second.id, first.id]

    def test_file_holds_camel_case_records(self, storage):
        bill = make_bill(100, date(2024, 1, 1))
        asyncio.run(storage.upsert_bill(bill))

        data = json.loads(storage.file_path.read_text(encoding="utf-8"))
        assert data[0]["id"] == str(bill.id)
        assert data[0]["amountPurchased"] == 100.0
        assert "status" not in data[0]

    def test_reload_from_disk(self, storage):
        bill = make_bill(100, date(2024, 1, 1), finished=date(2024, 1, 20))
        asyncio.run(storage.upsert_bill(bill))

        reopened = LocalJsonBillStorage(storage.file_path)
        bills = asyncio.run(reopened.list_bills())
        assert len(bills) == 1
        assert bills[0].id == bill.id
        assert bills[0].date_finished == date(2024, 1, 20)

    def test_corrupt_file_raises(self, storage):
        storage.file_path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SerializationError):
            asyncio.run(storage.list_bills())

    def test_non_array_file_raises(self, storage):
        storage.file_path.write_text('{"id": "x"}', encoding="utf-8")
        with pytest.raises(SerializationError):
            asyncio.run(storage.list_bills())

    def test_delete_unknown_id(self, storage):
        asyncio.run(storage.upsert_bill(make_bill(100, date(2024, 1, 1))))
        assert asyncio.run(storage.delete_bill(uuid4())) is False


class TestBillStore:
    """Tests for the observable record list."""

    def test_load(self, store, storage):
        asyncio.run(storage.upsert_bill(make_bill(100, date(2024, 1, 1))))
        bills = asyncio.run(store.load())
        assert len(bills) == 1
        assert store.is_loaded

    def test_save_refreshes_list(self, store):
        bill = make_bill(100, date(2024, 1, 1))
        assert asyncio.run(store.save(bill)) is True
        assert [b.id for b in store.bills] == [bill.id]
        assert store.get(bill.id) == bill

    def test_save_existing_id_replaces_in_place(self, store):
        first = make_bill(100, date(2024, 1, 1))
        second = make_bill(200, date(2024, 2, 1))
        asyncio.run(store.save(first))
        asyncio.run(store.save(second))

        edited = first.model_copy(update={"date_finished": date(2024, 1, 25)})
        asyncio.run(store.save(edited))

        bills = store.bills
        assert len(bills) == 2
        assert [b.id for b in bills] == [second.id, first.id]
        assert bills[1].date_finished == date(2024, 1, 25)

    def test_delete(self, store):
        bill = make_bill(100, date(2024, 1, 1))
        asyncio.run(store.save(bill))
        assert asyncio.run(store.delete(bill.id)) is True
        assert store.bills == []

    def test_delete_missing_id_leaves_list_unchanged(self, store):
        bill = make_bill(100, date(2024, 1, 1))
        asyncio.run(store.save(bill))
        before = store.bills

        assert asyncio.run(store.delete(uuid4())) is False
        assert store.bills == before

    def test_failed_save_leaves_list_unchanged(self):
        existing = make_bill(100, date(2024, 1, 1))
        store = BillStore(FailingStorage([existing]))
        asyncio.run(store.load())

        with pytest.raises(StorageError):
            asyncio.run(store.save(make_bill(200, date(2024, 2, 1))))
        assert [b.id for b in store.bills] == [existing.id]

    def test_failed_delete_leaves_list_unchanged(self):
        existing = make_bill(100, date(2024, 1, 1))
        store = BillStore(FailingStorage([existing]))
        asyncio.run(store.load())

        with pytest.raises(StorageError):
            asyncio.run(store.delete(existing.id))
        assert [b.id for b in store.bills] == [existing.id]

    def test_subscribers_get_new_snapshot(self, store):
        received = []
        unsubscribe = store.subscribe(received.append)

        bill = make_bill(100, date(2024, 1, 1))
        asyncio.run(store.save(bill))
        assert [[b.id for b in snap] for snap in received] == [[bill.id]]

        unsubscribe()
        asyncio.run(store.save(make_bill(200, date(2024, 2, 1))))
        assert len(received) == 1

    def test_failed_save_does_not_notify(self):
        store = BillStore(FailingStorage([]))
        received = []
        store.subscribe(received.append)

        with pytest.raises(StorageError):
            asyncio.run(store.save(make_bill(100, date(2024, 1, 1))))
        assert received == []

    def test_failed_reload_keeps_list(self):
        existing = make_bill(100, date(2024, 1, 1))
        storage = FailingStorage([existing])
        store = BillStore(storage)
        asyncio.run(store.load())

        received = []
        store.subscribe(received.append)
        storage.list_bills = AsyncMock(side_effect=StorageError("backend unavailable"))

        with pytest.raises(StorageError):
            asyncio.run(store.load())
        assert [b.id for b in store.bills] == [existing.id]
        assert store.is_loaded
        assert received == []

    def test_bills_is_a_copy(self, store):
        asyncio.run(store.save(make_bill(100, date(2024, 1, 1))))
        snapshot = store.bills
        snapshot.clear()
        assert len(store.bills) == 1
