"""Receipt image services package."""

from volttracker.services.image.receipt_image import (
    ImageRejectedError,
    ReceiptImageService,
)

__all__ = [
    "ImageRejectedError",
    "ReceiptImageService",
]
