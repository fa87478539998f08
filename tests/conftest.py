"""
Shared test fixtures for the scanner.
Zero network calls: remote endpoints go through httpx.MockTransport and the
local OCR engine is monkeypatched.
"""
import io
from collections.abc import Callable

import httpx
import pytest
from PIL import Image, ImageDraw

from src.core.config import Config
from src.dtos.scan_dto import ExtractionAttemptDTO, ImageInputDTO
from src.services.extraction_service import ExtractionStrategy

HUMAN_ESSAY = (
    "My dog likes to run in the park. "
    "We went to the lake with my uncle today. "
    "The water was cold and very clear. "
    "I caught two small fish before lunch time. "
    "My uncle cooked them on a small camp fire. "
    "Then we drove home late in the evening."
)

AI_ESSAY = (
    "In conclusion, this essay demonstrates clear understanding. "
    "Furthermore, the analysis is comprehensive."
)


@pytest.fixture
def config():
    """Defaults only; never reads a developer's .env file."""
    return Config(_env_file=None)


@pytest.fixture
def png_bytes():
    image = Image.new("RGB", (120, 40), "white")
    ImageDraw.Draw(image).text((5, 10), "hello", fill="black")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_image(png_bytes):
    return ImageInputDTO(content=png_bytes, media_type="image/png", filename="essay.png")


@pytest.fixture
def mock_client():
    """Build an AsyncClient whose requests are answered by ``handler``."""
    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


def unavailable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"error": "Model is currently loading"})


class FakeStrategy(ExtractionStrategy):
    """Returns a canned text and records how often it ran."""

    def __init__(self, config: Config, name: str, text: str | None, progress_after: int = 100):
        super().__init__(config)
        self.name = name
        self.text = text
        self.progress_after = progress_after
        self.calls = 0

    async def extract(self, image):
        self.calls += 1
        if self.text is None:
            return self._attempt(error="boom")
        return self._attempt(text=self.text)


class CrashingStrategy(ExtractionStrategy):
    name = "crashing"

    async def extract(self, image) -> ExtractionAttemptDTO:
        raise RuntimeError("unexpected engine state")
