"""
Two-Stage Form Validation

DESIGN DECISION: The entry form is checked in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (purchase date, insert date, amount)
- Value ranges (amount must not be negative)
- Any error here blocks the save

STAGE 2 - SEMANTIC VALIDATION:
- Date ordering (finished before inserted)
- Future date detection
- Zero or unusually large amounts
- Everything here is a warning; the user may still save

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the user to review.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from volttracker.config import get_settings
from volttracker.models.bill import (
    BillFormInput,
    ValidationIssue,
    ValidationResult,
)

# Matches the ElectricBill.notes limit
MAX_NOTES_LENGTH = 1000


class BillFormValidator:
    """Validates the bill entry form before it is turned into a record."""

    def __init__(self, today: Optional[date] = None):
        """
        Args:
            today: Reference date for future-date checks. Defaults to
                the current date at validation time.
        """
        self._settings = get_settings().app
        self._today = today

    def _validate_schema(
        self,
        form: BillFormInput,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if form.date_purchased is None:
            issues.append(ValidationIssue(
                field="date_purchased",
                issue_type="missing",
                message="Date purchased is required",
                severity="error",
                suggested_fix="Pick the date the units were bought",
            ))

        if form.date_inserted is None:
            issues.append(ValidationIssue(
                field="date_inserted",
                issue_type="missing",
                message="Date inserted is required",
                severity="error",
                suggested_fix="Pick the date the token was loaded into the meter",
            ))

        if form.amount_purchased is None:
            issues.append(ValidationIssue(
                field="amount_purchased",
                issue_type="missing",
                message="Amount purchased is required",
                severity="error",
                suggested_fix="Enter the amount paid for the units",
            ))
        elif form.amount_purchased < 0:
            issues.append(ValidationIssue(
                field="amount_purchased",
                issue_type="invalid_value",
                message="Amount purchased cannot be negative",
                severity="error",
                suggested_fix="Check if the amount was entered correctly",
            ))

        if form.notes and len(form.notes) > MAX_NOTES_LENGTH:
            issues.append(ValidationIssue(
                field="notes",
                issue_type="invalid_value",
                message=f"Notes must be at most {MAX_NOTES_LENGTH} characters",
                severity="error",
                suggested_fix="Shorten the notes",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        form: BillFormInput,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        symbol = self._settings.currency_symbol
        today = self._today or date.today()
        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)

        if (
            form.date_finished
            and form.date_inserted
            and form.date_finished < form.date_inserted
        ):
            issues.append(ValidationIssue(
                field="date_finished",
                issue_type="inconsistent",
                message="Date finished is before date inserted",
                severity="warning",
                suggested_fix="Please verify both dates",
            ))

        if (
            form.date_purchased
            and form.date_inserted
            and form.date_inserted < form.date_purchased
        ):
            issues.append(ValidationIssue(
                field="date_inserted",
                issue_type="inconsistent",
                message="Date inserted is before date purchased",
                severity="warning",
                suggested_fix="Please verify both dates",
            ))

        for field, label in (
            ("date_purchased", "Date purchased"),
            ("date_inserted", "Date inserted"),
            ("date_finished", "Date finished"),
        ):
            value = getattr(form, field)
            if value and value > max_future_date:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="future_date",
                    message=f"{label} ({value}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the date is correct",
                ))

        if form.amount_purchased is not None:
            if form.amount_purchased == 0:
                issues.append(ValidationIssue(
                    field="amount_purchased",
                    issue_type="suspicious_value",
                    message="Amount purchased is zero",
                    severity="warning",
                    suggested_fix="Please verify this amount is correct",
                ))

            max_amount = Decimal(str(self._settings.max_bill_amount))
            if form.amount_purchased > max_amount:
                issues.append(ValidationIssue(
                    field="amount_purchased",
                    issue_type="suspicious_value",
                    message=(
                        f"Amount ({symbol}{form.amount_purchased:,.2f}) "
                        f"seems unusually high"
                    ),
                    severity="warning",
                    suggested_fix="Please verify this amount is correct",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, form: BillFormInput) -> ValidationResult:
        """
        Run the two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found. Only error-level
            issues block a save.
        """
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(form)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(form)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Markdown summary shown under the form."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following before saving:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"- {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"- {warning}")

        return "\n".join(lines)
