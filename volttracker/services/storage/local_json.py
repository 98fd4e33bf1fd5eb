"""
Local JSON Storage Implementation

Keeps the whole record list as one JSON array under a fixed,
well-known key (file ``<data_dir>/volttracker_bills.json``).

- The file is read once, the first time the list is needed
- The in-memory mirror is the list returned to callers
- Every change rewrites the whole file (write to temp, then rename)

TRADEOFFS:
- Single user, single process (no locking)
- Whole-file rewrites are fine for a few hundred records
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import ValidationError

from volttracker.config import get_settings
from volttracker.logger import get_logger
from volttracker.models.bill import ElectricBill
from volttracker.services.storage.interface import (
    BillStorageInterface,
    SerializationError,
    StorageError,
)

logger = get_logger(__name__)


class LocalJsonBillStorage(BillStorageInterface):
    """
    File-backed storage mirroring the browser local-storage layout.

    New bills are prepended (newest first); saving an existing id
    replaces that bill in place.
    """

    name = "local"

    def __init__(self, file_path: Optional[Path] = None):
        self._path = Path(file_path or get_settings().local_storage.file_path)
        self._bills: Optional[list[ElectricBill]] = None

    @property
    def file_path(self) -> Path:
        return self._path

    def _read_file(self) -> list[ElectricBill]:
        """Load and parse the records file. Missing file = empty list."""
        if not self._path.exists():
            return []

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise SerializationError(
                    f"Expected a JSON array in {self._path}, got {type(data).__name__}"
                )
            return [ElectricBill.from_record(item) for item in data]
        except SerializationError:
            raise
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.error("local_bills_parse_failed", path=str(self._path), error=str(e))
            raise SerializationError(f"Failed to parse saved bills: {e}")

    def _write_file(self, bills: list[ElectricBill]) -> None:
        """Rewrite the records file atomically."""
        try:
            payload = json.dumps(
                [bill.to_record() for bill in bills],
                ensure_ascii=False,
                indent=2,
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize bills: {e}")

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.stem}-",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def _mirror(self) -> list[ElectricBill]:
        if self._bills is None:
            self._bills = self._read_file()
            logger.info(
                "local_bills_loaded",
                path=str(self._path),
                count=len(self._bills),
            )
        return self._bills

    async def list_bills(self) -> list[ElectricBill]:
        """Return the mirrored list (loaded from disk on first use)."""
        return list(self._mirror())

    async def upsert_bill(self, bill: ElectricBill) -> bool:
        """Replace by id, or prepend, then rewrite the file."""
        current = self._mirror()

        replaced = False
        updated: list[ElectricBill] = []
        for existing in current:
            if existing.id == bill.id:
                updated.append(bill)
                replaced = True
            else:
                updated.append(existing)
        if not replaced:
            updated.insert(0, bill)

        # Only swap the mirror once the file write succeeded
        self._write_file(updated)
        self._bills = updated
        return True

    async def delete_bill(self, bill_id: UUID) -> bool:
        """Remove the bill with this id. Unknown ids are a no-op."""
        current = self._mirror()
        remaining = [bill for bill in current if bill.id != bill_id]

        if len(remaining) == len(current):
            return False

        self._write_file(remaining)
        self._bills = remaining
        return True
