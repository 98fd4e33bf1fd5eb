"""
Receipt Image Service

Turns a camera capture or uploaded photo into the blob stored on a
bill (``receipt_image``, a base64 data URL), and back again.

This service handles:
1. Format and size checks against AppSettings
2. EXIF orientation (phone photos are often stored rotated)
3. Downscaling so the stored blob stays small
4. Re-encoding to JPEG, shrinking further when the backend caps
   the size of a stored value
"""

import base64
import binascii
import re
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from volttracker.config import get_settings
from volttracker.logger import get_logger
from volttracker.models.bill import ReceiptImage

logger = get_logger(__name__)

# Longest side after downscaling, in pixels
MAX_DIMENSION = 1600
JPEG_QUALITY = 80

# Tried in order, after the defaults, until the data URL fits a size budget
SHRINK_DIMENSIONS = (1600, 1200, 1000, 800, 640, 480, 360)
SHRINK_QUALITIES = (80, 65, 50, 35, 25)

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<payload>.+)$", re.DOTALL)

# Pillow format name -> file extensions we accept for it
_FORMAT_EXTENSIONS = {
    "JPEG": {"jpg", "jpeg"},
    "PNG": {"png"},
    "WEBP": {"webp"},
}


class ImageRejectedError(Exception):
    """The photo cannot be used as a receipt image."""
    pass


class ReceiptImageService:
    """
    Service for normalizing receipt photos with Pillow.

    Flow:
    1. Receive raw image bytes
    2. Check size and format
    3. Fix orientation, downscale, re-encode as JPEG
    4. Return bytes plus a data URL ready for storage
    """

    def __init__(
        self,
        max_dimension: int = MAX_DIMENSION,
        jpeg_quality: int = JPEG_QUALITY,
        max_chars: Optional[int] = None,
    ):
        self._app_settings = get_settings().app
        self._max_dimension = max_dimension
        self._jpeg_quality = jpeg_quality
        self._max_chars = max_chars

    @property
    def max_chars(self) -> Optional[int]:
        """Longest data URL this service will produce (None = no limit)."""
        return self._max_chars

    def _encode_steps(self, budget: Optional[int]):
        """Yield (longest side, quality) pairs, largest first."""
        first = (self._max_dimension, self._jpeg_quality)
        yield first
        if budget is None:
            return
        for dimension in SHRINK_DIMENSIONS:
            if dimension > self._max_dimension:
                continue
            for quality in SHRINK_QUALITIES:
                if quality <= self._jpeg_quality and (dimension, quality) != first:
                    yield dimension, quality

    def _check_format(self, img: Image.Image) -> None:
        allowed = set(self._app_settings.supported_formats_list)
        extensions = _FORMAT_EXTENSIONS.get(img.format or "", set())
        if not extensions & allowed:
            raise ImageRejectedError(
                f"Unsupported image type: {img.format}. "
                f"Allowed: {', '.join(sorted(allowed))}"
            )

    def prepare(
        self,
        image_bytes: bytes,
        mime_type: Optional[str] = None,
        max_chars: Optional[int] = None,
    ) -> ReceiptImage:
        """
        Normalize a receipt photo.

        Args:
            image_bytes: Raw bytes from the camera or file uploader
            mime_type: Declared type, used only in error messages
            max_chars: Size budget for the data URL. Defaults to the
                service's own limit. Quality and size are stepped down
                until the data URL fits.

        Returns:
            ReceiptImage with JPEG bytes and a data URL

        Raises:
            ImageRejectedError: Empty, too large, unreadable, unsupported,
                or impossible to fit in the size budget
        """
        budget = max_chars if max_chars is not None else self._max_chars

        if not image_bytes:
            raise ImageRejectedError("The photo is empty")

        max_bytes = self._app_settings.max_upload_size_bytes
        if len(image_bytes) > max_bytes:
            raise ImageRejectedError(
                f"Photo is too large ({len(image_bytes) / (1024 * 1024):.1f} MB). "
                f"Maximum is {self._app_settings.max_upload_size_mb} MB."
            )

        try:
            img = Image.open(BytesIO(image_bytes))
            self._check_format(img)
            img = ImageOps.exif_transpose(img)

            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")

            # Dimensions only ever shrink, so thumbnail in place
            for dimension, quality in self._encode_steps(budget):
                img.thumbnail((dimension, dimension))
                output = BytesIO()
                img.save(output, format="JPEG", quality=quality, optimize=True)
                content = output.getvalue()
                data_url = self.encode_data_url(content, "image/jpeg")
                if budget is None or len(data_url) <= budget:
                    break
            else:
                raise ImageRejectedError(
                    f"Photo is too detailed to store ({len(data_url)} > {budget} "
                    "characters even after shrinking). Try a closer, plainer shot."
                )
        except ImageRejectedError:
            raise
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageRejectedError(
                f"Could not read the photo ({mime_type or 'unknown type'}): {e}"
            )

        if budget is not None and (dimension, quality) != (self._max_dimension, self._jpeg_quality):
            logger.info(
                "receipt_image_shrunk",
                width=img.width,
                height=img.height,
                quality=quality,
                chars=len(data_url),
                budget=budget,
            )

        return ReceiptImage(
            content=content,
            mime_type="image/jpeg",
            width=img.width,
            height=img.height,
            data_url=data_url,
        )

    @staticmethod
    def encode_data_url(content: bytes, mime_type: str) -> str:
        """Build a data URL from raw bytes."""
        payload = base64.b64encode(content).decode("ascii")
        return f"data:{mime_type};base64,{payload}"

    @staticmethod
    def decode_data_url(data_url: str) -> tuple[bytes, str]:
        """
        Split a data URL into (bytes, mime_type).

        Raises:
            ImageRejectedError: If the value is not a base64 data URL
        """
        match = _DATA_URL_RE.match(data_url.strip())
        if not match:
            raise ImageRejectedError("Stored receipt image is not a base64 data URL")
        try:
            content = base64.b64decode(match.group("payload"), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageRejectedError(f"Stored receipt image is corrupt: {e}")
        return content, match.group("mime")
