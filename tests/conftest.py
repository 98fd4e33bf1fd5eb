"""Shared fixtures: isolated settings and a few ready-made bills."""

import io
import random
from datetime import date
from decimal import Decimal

import pytest
from PIL import Image, ImageDraw

from volttracker.config import get_settings
from volttracker.models.bill import ElectricBill


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every test in an empty directory with no API keys set."""
    monkeypatch.chdir(tmp_path)
    for var in (
        "GEMINI_API_KEY",
        "STORAGE_BACKEND",
        "CURRENCY_SYMBOL",
        "MAX_UPLOAD_SIZE_MB",
        "SUPPORTED_IMAGE_FORMATS",
        "MAX_BILL_AMOUNT",
        "FUTURE_DATE_TOLERANCE_DAYS",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
        "LOCAL_STORAGE_DATA_DIR",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def finished_bill() -> ElectricBill:
    return ElectricBill(
        date_purchased=date(2024, 1, 1),
        date_inserted=date(2024, 1, 1),
        date_finished=date(2024, 1, 10),
        amount_purchased=Decimal("100"),
    )


@pytest.fixture
def active_bill() -> ElectricBill:
    return ElectricBill(
        date_purchased=date(2024, 1, 5),
        date_inserted=date(2024, 1, 5),
        amount_purchased=Decimal("200"),
    )


@pytest.fixture(scope="session")
def receipt_photo() -> bytes:
    """A 3000x4000 phone-style JPEG of a printed receipt."""
    width, height = 3000, 4000
    paper = Image.new("RGB", (width, height), (246, 243, 236))
    shade = Image.linear_gradient("L").resize((width, height)).convert("RGB")
    photo = Image.blend(paper, shade, 0.12)

    draw = ImageDraw.Draw(photo)
    rng = random.Random(7)
    for top in range(200, height - 200, 80):
        left = 200
        while left < width - 300:
            glyph = rng.randint(14, 34)
            draw.rectangle([left, top, left + glyph, top + 26], fill=(40, 40, 48))
            left += glyph + rng.choice((8, 10, 12, 40))

    buffer = io.BytesIO()
    photo.save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()
