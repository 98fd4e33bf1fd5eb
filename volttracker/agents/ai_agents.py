"""
AI Agents for VoltTracker

DESIGN DECISION: The AI is an ADVISOR, never a source of record.

1. USAGE ANALYSIS:
   - CAN: Summarize trends, durations and anomalies in the user's records
   - CANNOT: Change or persist any record
   - Sees at most the 12 most recent records, without receipt images

2. RECEIPT EXTRACTION:
   - CAN: Suggest an amount and purchase date read off a photo
   - CANNOT: Save anything; the form stays editable
   - Failure of any kind yields an empty suggestion, never an error

Neither call is retried automatically. The user re-triggers analysis
by hand.
"""

import json
from typing import Any, Optional, Sequence

import google.generativeai as genai
from pydantic import ValidationError

from volttracker.config import get_settings
from volttracker.logger import get_logger
from volttracker.models.bill import ElectricBill, ExtractedReceipt

logger = get_logger(__name__)

# Records sent to the model for analysis
ANALYSIS_WINDOW = 12

EMPTY_ANALYSIS_MESSAGE = "Please add some bill records to generate an AI analysis."
NO_ANALYSIS_MESSAGE = "No analysis could be generated at this time."

ANALYSIS_PROMPT = """I have a dataset of electricity bill purchases.
Here is the data (Last {count} records):
{records}

Please analyze this data and provide a concise report in Markdown format.

1. **Spending Trend**: Are costs going up or down?
2. **Consumption Efficiency**: Calculate the average days a purchase lasts (Date Finished - Date Inserted).
3. **Anomalies**: Identify any purchase that didn't last as long as usual or cost significantly more.
4. **Recommendations**: Give 3 quick tips to reduce electricity consumption based on general best practices.

Keep the tone professional yet helpful. Use bullet points and bold text for emphasis."""

EXTRACTION_PROMPT = """This is a photo of a prepaid electricity token receipt.

Read the total amount paid and the purchase date.

Respond with ONLY a JSON object in this exact format:
{"amount": 5000.00, "date": "YYYY-MM-DD"}

Leave out any field you cannot read clearly. Do not guess."""


class InsightError(Exception):
    """Base exception for AI insight failures."""
    pass


class AnalysisFailedError(InsightError):
    """The usage analysis could not be generated."""
    pass


def select_recent(bills: Sequence[ElectricBill], limit: int = ANALYSIS_WINDOW) -> list[ElectricBill]:
    """
    The ``limit`` most recently inserted bills, oldest first.

    Ties on date_inserted keep their list order.
    """
    ordered = sorted(bills, key=lambda b: b.date_inserted)
    return ordered[-limit:] if limit > 0 else []


def _parse_json_object(text: str) -> Optional[dict[str, Any]]:
    """Pull the first {...} block out of a model response."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    data = json.loads(text[start:end])
    return data if isinstance(data, dict) else None


class BillInsightAgent:
    """
    Gemini-backed usage analysis and receipt reading.

    A model can be injected for testing; otherwise one is built from
    GeminiSettings. Without an API key the agent still constructs, and
    every call degrades as documented on the method.
    """

    def __init__(self, model: Optional[Any] = None):
        self._settings = get_settings().gemini
        self._model = model
        if self._model is None and self._settings.is_configured:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @property
    def is_available(self) -> bool:
        return self._model is not None

    async def analyze_usage(self, bills: Sequence[ElectricBill]) -> str:
        """
        Produce a Markdown report on the user's consumption.

        Returns:
            The report, or a fixed placeholder when there are no bills
            (no request is made in that case)

        Raises:
            AnalysisFailedError: Missing API key or the request failed
        """
        if not bills:
            return EMPTY_ANALYSIS_MESSAGE

        if self._model is None:
            logger.warning("usage_analysis_unconfigured")
            raise AnalysisFailedError(
                "API Key is missing. Please check your environment configuration."
            )

        recent = select_recent(bills)
        records = json.dumps([bill.to_record(include_image=False) for bill in recent])
        prompt = ANALYSIS_PROMPT.format(count=len(recent), records=records)

        try:
            response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            logger.error("usage_analysis_failed", record_count=len(recent), error=str(e))
            raise AnalysisFailedError(f"Failed to analyze data with Gemini: {e}")

        logger.info("usage_analysis_generated", record_count=len(recent), chars=len(text))
        return text or NO_ANALYSIS_MESSAGE

    async def extract_from_image(self, image_bytes: bytes, mime_type: str) -> ExtractedReceipt:
        """
        Best-effort read of amount and purchase date from a receipt.

        Never raises. Anything that goes wrong yields an empty result.
        """
        if self._model is None or not image_bytes:
            return ExtractedReceipt()

        try:
            response = await self._model.generate_content_async(
                [EXTRACTION_PROMPT, {"mime_type": mime_type, "data": image_bytes}],
                generation_config={"response_mime_type": "application/json"},
            )
            data = _parse_json_object((response.text or "").strip())
        except Exception as e:
            logger.warning("receipt_extraction_failed", error=str(e))
            return ExtractedReceipt()

        if data is None:
            logger.warning("receipt_extraction_unparseable")
            return ExtractedReceipt()

        # Keep whichever field is usable; a bad amount must not discard a good date
        usable = {}
        for key in ("amount", "date"):
            if data.get(key) in (None, ""):
                continue
            try:
                ExtractedReceipt.model_validate({key: data[key]})
            except ValidationError as e:
                logger.warning("receipt_field_rejected", field=key, error=str(e))
                continue
            usable[key] = data[key]
        result = ExtractedReceipt.model_validate(usable)

        logger.info(
            "receipt_extracted",
            has_amount=result.amount is not None,
            has_date=result.purchase_date is not None,
        )
        return result
