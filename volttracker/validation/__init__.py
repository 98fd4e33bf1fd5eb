"""Form validation package."""

from volttracker.validation.validator import BillFormValidator

__all__ = ["BillFormValidator"]
