"""
Main Orchestrator for VoltTracker

This module ties together all the components and defines the
end-to-end flows for:
1. Bill entry (form → validate → build record → save → list refresh)
2. Receipt scanning (photo → normalize → AI suggestion for the form)
3. Usage analysis (records → AI report → card state)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is saved unless the form passes validation
- AI output only ever prefills the form or fills the analysis card
- The storage backend is chosen once, here, at start-up
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from volttracker.agents import AnalysisFailedError, BillInsightAgent
from volttracker.config import StorageBackend, get_settings
from volttracker.logger import configure_logging, get_logger
from volttracker.models.bill import (
    AnalysisResult,
    BillFormInput,
    ElectricBill,
    ExtractedReceipt,
    ReceiptImage,
    ValidationResult,
)
from volttracker.services.export import BillSpreadsheetExporter
from volttracker.services.image import ReceiptImageService
from volttracker.services.storage import (
    BillStorageInterface,
    GoogleSheetsBillStorage,
    GoogleSheetsClient,
    LocalJsonBillStorage,
)
from volttracker.store import BillStore
from volttracker.validation import BillFormValidator

logger = get_logger(__name__)

ANALYSIS_ERROR_MESSAGE = (
    "Failed to generate analysis. Make sure you have a valid API Key in your environment."
)


class BillEntryFlow:
    """
    Orchestrates creating, editing and deleting bills.

    Flow:
    1. Scan (optional) → Normalize photo, ask AI for amount/date
    2. Fill → User completes or corrects the form
    3. Validate → Two-stage validation, errors block
    4. Save → Upsert through the store, list is refreshed
    """

    def __init__(
        self,
        store: BillStore,
        validator: Optional[BillFormValidator] = None,
        image_service: Optional[ReceiptImageService] = None,
        insight_agent: Optional[BillInsightAgent] = None,
    ):
        self._store = store
        self._validator = validator or BillFormValidator()
        self._image_service = image_service or ReceiptImageService(
            max_chars=store.storage.max_field_chars,
        )
        self._insight_agent = insight_agent or BillInsightAgent()

    @property
    def validator(self) -> BillFormValidator:
        return self._validator

    @property
    def image_service(self) -> ReceiptImageService:
        return self._image_service

    async def submit(
        self,
        form: BillFormInput,
        existing_id: Optional[UUID] = None,
    ) -> tuple[Optional[ElectricBill], ValidationResult]:
        """
        Validate the form and save the resulting bill.

        Args:
            form: Values from the entry form
            existing_id: Id of the bill being edited (None creates a new bill)

        Returns:
            (saved_bill, validation). saved_bill is None when the form
            has errors.

        Raises:
            StorageError: If the backend write fails
        """
        validation = self._validator.validate(form)
        if not validation.is_valid:
            logger.info(
                "bill_form_rejected",
                error_count=validation.error_count,
                fields=[i.field for i in validation.issues if i.severity == "error"],
            )
            return None, validation

        bill = form.to_bill(bill_id=existing_id)
        await self._store.save(bill)
        return bill, validation

    async def delete(self, bill_id: UUID) -> bool:
        """
        Delete a bill the user confirmed for deletion.

        Returns False when the id is unknown.
        """
        return await self._store.delete(bill_id)

    async def scan_receipt(
        self,
        image_bytes: bytes,
        mime_type: str,
    ) -> tuple[ReceiptImage, ExtractedReceipt]:
        """
        Normalize a receipt photo and read suggestions off it.

        Raises:
            ImageRejectedError: If the photo cannot be used. AI failures
                never raise; they give an empty suggestion.
        """
        receipt = self._image_service.prepare(image_bytes, mime_type)
        extracted = await self._insight_agent.extract_from_image(
            receipt.content,
            receipt.mime_type,
        )
        return receipt, extracted


class AnalysisFlow:
    """
    Holds the state of the AI analysis card.

    Analysis only runs when the user asks for it. A failure leaves a
    user-facing error on the result; pressing the button again retries.
    """

    def __init__(self, insight_agent: Optional[BillInsightAgent] = None):
        self._insight_agent = insight_agent or BillInsightAgent()
        self._result = AnalysisResult()

    @property
    def result(self) -> AnalysisResult:
        return self._result

    @property
    def is_available(self) -> bool:
        return self._insight_agent.is_available

    async def run(self, bills: Sequence[ElectricBill]) -> AnalysisResult:
        """Generate a fresh report for these bills."""
        self._result = AnalysisResult(markdown=self._result.markdown, is_loading=True)

        try:
            markdown = await self._insight_agent.analyze_usage(bills)
        except AnalysisFailedError as e:
            logger.warning("analysis_card_failed", error=str(e))
            self._result = AnalysisResult(error=ANALYSIS_ERROR_MESSAGE)
            return self._result

        self._result = AnalysisResult(markdown=markdown, generated_at=datetime.utcnow())
        return self._result


@dataclass
class AppComponents:
    """Everything the UI needs, built once per process."""

    store: BillStore
    entry_flow: BillEntryFlow
    analysis_flow: AnalysisFlow
    exporter: BillSpreadsheetExporter


def create_storage(backend: Optional[StorageBackend] = None) -> BillStorageInterface:
    """
    Build the configured storage backend.

    Falls back to local storage when Google Sheets is selected but not
    configured, so the app still starts.
    """
    backend = backend or get_settings().app.storage_backend

    if backend == StorageBackend.GOOGLE_SHEETS:
        try:
            return GoogleSheetsBillStorage(GoogleSheetsClient())
        except Exception as e:
            logger.warning("storage_backend_fallback", requested=backend.value, error=str(e))

    return LocalJsonBillStorage()


def create_app_components(
    storage: Optional[BillStorageInterface] = None,
    insight_agent: Optional[BillInsightAgent] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Backend to use. Defaults to the one selected by
            STORAGE_BACKEND.
        insight_agent: AI agent shared by both flows.

    Returns:
        AppComponents bundle
    """
    configure_logging()

    storage = storage or create_storage()
    insight_agent = insight_agent or BillInsightAgent()
    store = BillStore(storage)

    logger.info(
        "app_components_created",
        backend=storage.name,
        ai_available=insight_agent.is_available,
    )

    return AppComponents(
        store=store,
        entry_flow=BillEntryFlow(store, insight_agent=insight_agent),
        analysis_flow=AnalysisFlow(insight_agent),
        exporter=BillSpreadsheetExporter(),
    )
