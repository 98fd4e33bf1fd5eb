"""
Core Data Models for VoltTracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the persisted camelCase record format
4. Keep derived values (status, statistics) out of storage

DESIGN DECISION: We use Pydantic v2. The persisted form of a bill uses
camelCase field names (datePurchased, dateInserted, ...) so the local JSON
file, the Google Sheets header and the AI prompt all share one format.
Python code always uses the snake_case attribute names.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


TWO_PLACES = Decimal("0.01")


def _to_amount(value: Any) -> Any:
    """Coerce numbers (including JSON floats) to a 2dp Decimal."""
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    try:
        return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        # Let pydantic report the type error
        return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BillStatus(str, Enum):
    """
    Lifecycle status of a purchase.

    CRITICAL: This is DERIVED from date_finished and never stored.
    """
    ACTIVE = "Active"        # Units still running on the meter
    FINISHED = "Finished"    # Units ran out on date_finished


# =============================================================================
# CORE BILL MODEL
# =============================================================================

class ElectricBill(BaseModel):
    """
    A single prepaid electricity purchase.

    This is the ONLY persisted entity. The id is generated once on creation
    and never reassigned; updates replace the whole record by id.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique bill ID"
    )

    # Dates
    date_purchased: date = Field(
        ...,
        description="When the units were bought"
    )
    date_inserted: date = Field(
        ...,
        description="When the token was loaded into the meter"
    )
    date_finished: Optional[date] = Field(
        default=None,
        description="When the units ran out (absent = still running)"
    )

    amount_purchased: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount paid, currency-agnostic"
    )

    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="User notes about this purchase"
    )
    receipt_image: Optional[str] = Field(
        default=None,
        description="Receipt photo as a base64 data URL"
    )

    @field_validator("date_finished", "notes", "receipt_image", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        """Persistence layers write missing values as empty strings."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("amount_purchased", mode="before")
    @classmethod
    def normalize_amount(cls, v: Any) -> Any:
        return _to_amount(v)

    @field_serializer("amount_purchased", when_used="json")
    def serialize_amount(self, v: Decimal) -> float:
        return float(v)

    @property
    def status(self) -> BillStatus:
        """Active while no finish date is recorded."""
        if self.date_finished is None:
            return BillStatus.ACTIVE
        return BillStatus.FINISHED

    @property
    def duration_days(self) -> Optional[int]:
        """Whole days between insertion and finish, if finished."""
        if self.date_finished is None:
            return None
        return abs((self.date_finished - self.date_inserted).days)

    def to_record(self, include_image: bool = True) -> dict:
        """Serialize to the persisted camelCase format."""
        exclude = None if include_image else {"receipt_image"}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)

    @classmethod
    def from_record(cls, data: dict) -> "ElectricBill":
        """Build a bill from its persisted camelCase form."""
        return cls.model_validate(data)


# =============================================================================
# STATISTICS MODELS
# =============================================================================

class ChartPoint(BaseModel):
    """One bar of the spending chart."""
    model_config = ConfigDict(frozen=True)

    date_inserted: date
    amount_purchased: Decimal


class BillStatistics(BaseModel):
    """
    Aggregate figures shown on the dashboard.

    Computed from a snapshot of the record list - never stored.
    """
    model_config = ConfigDict(frozen=True)

    total_spent: Decimal = Field(default=Decimal("0.00"))
    avg_spent: Decimal = Field(default=Decimal("0.00"))
    average_duration_days: int = Field(
        default=0,
        ge=0,
        description="Mean days a purchase lasts, over finished purchases only"
    )
    entry_count: int = Field(default=0, ge=0)
    active_count: int = Field(default=0, ge=0)
    finished_count: int = Field(default=0, ge=0)


# =============================================================================
# AI MODELS
# =============================================================================

class ExtractedReceipt(BaseModel):
    """
    Fields read off a receipt photo by the AI.

    This is a SUGGESTION only - the form stays editable and every
    field may be missing.
    """
    model_config = ConfigDict(populate_by_name=True)

    amount: Optional[Decimal] = Field(default=None, ge=0)
    purchase_date: Optional[date] = Field(default=None, alias="date")

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v: Any) -> Any:
        return _to_amount(v)

    @property
    def is_empty(self) -> bool:
        return self.amount is None and self.purchase_date is None


class AnalysisResult(BaseModel):
    """State of the AI usage-analysis card."""

    markdown: str = ""
    is_loading: bool = False
    error: Optional[str] = None
    generated_at: Optional[datetime] = None


# =============================================================================
# RECEIPT IMAGE MODEL
# =============================================================================

class ReceiptImage(BaseModel):
    """A normalized receipt photo, ready to attach to a bill."""

    content: bytes = Field(..., description="JPEG bytes")
    mime_type: str = Field(default="image/jpeg")
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    data_url: str = Field(..., description="data:<mime>;base64,<payload>")


# =============================================================================
# FORM + VALIDATION MODELS
# =============================================================================

class BillFormInput(BaseModel):
    """
    Raw values from the entry form.

    All fields are optional here; the validator decides what is missing.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date_purchased: Optional[date] = None
    date_inserted: Optional[date] = None
    date_finished: Optional[date] = None
    amount_purchased: Optional[Decimal] = None
    notes: Optional[str] = None
    receipt_image: Optional[str] = None

    @field_validator("amount_purchased", mode="before")
    @classmethod
    def normalize_amount(cls, v: Any) -> Any:
        return _to_amount(v)

    @classmethod
    def from_bill(cls, bill: ElectricBill) -> "BillFormInput":
        """Prefill the form for editing an existing bill."""
        return cls(
            date_purchased=bill.date_purchased,
            date_inserted=bill.date_inserted,
            date_finished=bill.date_finished,
            amount_purchased=bill.amount_purchased,
            notes=bill.notes,
            receipt_image=bill.receipt_image,
        )

    def with_scan(self, extracted: ExtractedReceipt, receipt_image: str) -> "BillFormInput":
        """
        Prefill from a scanned receipt.

        Values the AI could not read keep what the form already had.
        A read value of 0 is still a value.
        """
        return self.model_copy(update={
            "amount_purchased": (
                extracted.amount if extracted.amount is not None else self.amount_purchased
            ),
            "date_purchased": (
                extracted.purchase_date
                if extracted.purchase_date is not None
                else self.date_purchased
            ),
            "receipt_image": receipt_image,
        })

    def without_photo(self) -> "BillFormInput":
        return self.model_copy(update={"receipt_image": None})

    def to_bill(self, bill_id: Optional[UUID] = None) -> ElectricBill:
        """
        Build the record to save.

        A fresh id is generated for new entries; edits pass the
        existing id so the save replaces the stored record.
        """
        fields = dict(
            date_purchased=self.date_purchased,
            date_inserted=self.date_inserted,
            date_finished=self.date_finished,
            amount_purchased=self.amount_purchased,
            notes=self.notes or None,
            receipt_image=self.receipt_image,
        )
        if bill_id is not None:
            fields["id"] = bill_id
        return ElectricBill(**fields)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage form validation.

    Stage 1: Schema validation (required fields, value ranges)
    Stage 2: Semantic validation (date logic, suspicious values)
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool = Field(
        ...,
        description="Did schema validation pass?"
    )
    semantic_valid: bool = Field(
        ...,
        description="Did semantic validation pass?"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def is_valid(self) -> bool:
        """A save may proceed when no error-level issue was found."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
