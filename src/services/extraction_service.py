"""Image-to-text extraction: remote handwriting OCR, remote OCR.space, local Tesseract."""
import asyncio
import base64
import io
from collections.abc import Callable

import httpx
import pytesseract
from PIL import Image

from src.core.config import Config
from src.core.exceptions import TextExtractionError, UnsupportedImageError
from src.core.logging import get_logger
from src.dtos.scan_dto import SUPPORTED_IMAGE_TYPES, ExtractionAttemptDTO, ImageInputDTO
from src.utils.image_preprocessing import binarize

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


class ExtractionStrategy:
    """One way of turning an image into text.

    ``extract`` never raises for network or format problems; it reports them
    as a failed attempt so the cascade can move on.
    """

    name: str = "base"
    # Progress milestones reported by the cascade around this strategy
    progress_before: int | None = None
    progress_after: int = 100

    def __init__(self, config: Config) -> None:
        self._config = config

    def _attempt(self, text: str | None = None, error: str | None = None) -> ExtractionAttemptDTO:
        return ExtractionAttemptDTO(
            strategy=self.name,
            text=text,
            error=error,
            min_chars=self._config.min_usable_chars,
        )

    async def extract(self, image: ImageInputDTO) -> ExtractionAttemptDTO:
        raise NotImplementedError


class HandwritingOCRStrategy(ExtractionStrategy):
    """TrOCR handwriting transformer behind the Hugging Face inference API."""

    name = "handwriting_ocr"
    progress_after = 100

    def __init__(self, config: Config, client: httpx.AsyncClient) -> None:
        super().__init__(config)
        self._client = client

    async def extract(self, image: ImageInputDTO) -> ExtractionAttemptDTO:
        headers = {"Content-Type": "application/octet-stream", **self._config.hf_headers}
        try:
            response = await self._client.post(
                self._config.handwriting_ocr_url,
                content=image.content,
                headers=headers,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("handwriting_ocr_failed", error=str(e), error_type=type(e).__name__)
            return self._attempt(error=str(e))

        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            text = payload[0].get("generated_text")
            if isinstance(text, str) and text:
                return self._attempt(text=text)

        return self._attempt(error="response has no generated_text")


class OCRSpaceStrategy(ExtractionStrategy):
    """OCR.space general purpose OCR, engine 2 for irregular and numeric text."""

    name = "ocr_space"
    progress_before = 40
    progress_after = 90

    def __init__(self, config: Config, client: httpx.AsyncClient) -> None:
        super().__init__(config)
        self._client = client

    def _data_url(self, image: ImageInputDTO) -> str:
        encoded = base64.b64encode(image.content).decode("ascii")
        return f"data:{image.media_type};base64,{encoded}"

    async def extract(self, image: ImageInputDTO) -> ExtractionAttemptDTO:
        form = {
            "apikey": self._config.ocr_space_api_key,
            "language": self._config.ocr_language,
            "OCREngine": self._config.ocr_engine,
        }
        try:
            response = await self._client.post(
                self._config.ocr_space_url,
                data=form,
                # (None, value) sends a plain field and forces a multipart body
                files={"base64Image": (None, self._data_url(image))},
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("ocr_space_failed", error=str(e), error_type=type(e).__name__)
            return self._attempt(error=str(e))

        if not isinstance(payload, dict):
            return self._attempt(error="unexpected response shape")

        if payload.get("IsErroredOnProcessing"):
            message = payload.get("ErrorMessage") or "processing error"
            logger.warning("ocr_space_processing_error", error=str(message))
            return self._attempt(error=str(message))

        results = payload.get("ParsedResults") or []
        if results and isinstance(results[0], dict) and isinstance(results[0].get("ParsedText"), str):
            return self._attempt(text=results[0]["ParsedText"])

        return self._attempt(error="response has no ParsedResults")


class TesseractStrategy(ExtractionStrategy):
    """Local Tesseract engine; always available, weakest on handwriting."""

    name = "tesseract"
    progress_before = 60
    progress_after = 95

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        if config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = config.tesseract_cmd

    def _recognize_sync(self, content: bytes) -> str:
        if self._config.ocr_preprocess:
            content = binarize(content, self._config.ocr_threshold)
        with Image.open(io.BytesIO(content)) as img:
            return pytesseract.image_to_string(
                img,
                lang=self._config.ocr_language,
                config=f"--psm {self._config.tesseract_psm}",
            )

    async def extract(self, image: ImageInputDTO) -> ExtractionAttemptDTO:
        """Run recognition in a thread pool so the event loop is not blocked."""
        loop = asyncio.get_event_loop()
        try:
            text = await loop.run_in_executor(None, self._recognize_sync, image.content)
        except (pytesseract.TesseractError, OSError, ValueError) as e:
            logger.warning("tesseract_failed", error=str(e), error_type=type(e).__name__)
            return self._attempt(error=str(e))
        return self._attempt(text=text)


class ExtractionService:
    """Tries each strategy in order and accepts the first usable text."""

    def __init__(self, strategies: list[ExtractionStrategy]) -> None:
        self._strategies = strategies

    async def extract(
        self,
        image: ImageInputDTO,
        progress: ProgressCallback | None = None,
    ) -> ExtractionAttemptDTO:
        if image.media_type not in SUPPORTED_IMAGE_TYPES:
            raise UnsupportedImageError(image.media_type)

        _report(progress, 10)

        for strategy in self._strategies:
            if strategy.progress_before is not None:
                _report(progress, strategy.progress_before)

            try:
                attempt = await strategy.extract(image)
            except Exception as e:
                logger.warning(
                    "extraction_strategy_crashed",
                    strategy=strategy.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if attempt.usable:
                _report(progress, strategy.progress_after)
                logger.info("text_extracted", strategy=strategy.name, chars=len(attempt.text))
                return attempt

            logger.info("extraction_strategy_unusable", strategy=strategy.name, error=attempt.error)

        logger.warning("text_extraction_exhausted", strategies=[s.name for s in self._strategies])
        raise TextExtractionError()


def _report(progress: ProgressCallback | None, value: int) -> None:
    if progress is not None:
        progress(value)
