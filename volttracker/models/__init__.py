"""
Data Models Package

This package contains all Pydantic models used in VoltTracker.
All data flowing through the system must conform to these schemas.
"""

from volttracker.models.bill import (
    AnalysisResult,
    BillFormInput,
    BillStatistics,
    BillStatus,
    ChartPoint,
    ElectricBill,
    ExtractedReceipt,
    ReceiptImage,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "AnalysisResult",
    "BillFormInput",
    "BillStatistics",
    "BillStatus",
    "ChartPoint",
    "ElectricBill",
    "ExtractedReceipt",
    "ReceiptImage",
    "ValidationIssue",
    "ValidationResult",
]
