"""
Test: OCR strategies and the extraction cascade.
"""
import httpx
import pytest
from PIL import Image

from src.core.exceptions import TextExtractionError, UnsupportedImageError
from src.dtos.scan_dto import ExtractionAttemptDTO, ImageInputDTO
from src.services import extraction_service
from src.services.extraction_service import (
    ExtractionService,
    HandwritingOCRStrategy,
    OCRSpaceStrategy,
    TesseractStrategy,
)
from tests.conftest import CrashingStrategy, FakeStrategy, unavailable


class TestExtractionAttempt:
    def test_usable_at_five_chars(self):
        assert ExtractionAttemptDTO(strategy="s", text="abcde").usable

    def test_trimmed_before_length_check(self):
        assert not ExtractionAttemptDTO(strategy="s", text="  abcd \n").usable

    def test_missing_text_not_usable(self):
        assert not ExtractionAttemptDTO(strategy="s", error="boom").usable


class TestHandwritingOCRStrategy:
    async def test_generated_text(self, config, mock_client, png_image):
        seen = {}

        def handler(request):
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.content
            return httpx.Response(200, json=[{"generated_text": "dear diary"}])

        attempt = await HandwritingOCRStrategy(config, mock_client(handler)).extract(png_image)
        assert attempt.text == "dear diary"
        assert attempt.usable
        assert seen["content_type"] == "application/octet-stream"
        assert seen["body"] == png_image.content

    async def test_http_error_is_a_failed_attempt(self, config, mock_client, png_image):
        attempt = await HandwritingOCRStrategy(config, mock_client(unavailable)).extract(png_image)
        assert attempt.text is None
        assert attempt.error

    async def test_non_json_body(self, config, mock_client, png_image):
        client = mock_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        attempt = await HandwritingOCRStrategy(config, client).extract(png_image)
        assert not attempt.usable

    async def test_empty_generated_text(self, config, mock_client, png_image):
        client = mock_client(lambda request: httpx.Response(200, json=[{"generated_text": ""}]))
        attempt = await HandwritingOCRStrategy(config, client).extract(png_image)
        assert attempt.text is None


class TestOCRSpaceStrategy:
    async def test_parsed_text(self, config, mock_client, png_image):
        seen = {}

        def handler(request):
            seen["body"] = request.content
            seen["content_type"] = request.headers["content-type"]
            return httpx.Response(200, json={
                "IsErroredOnProcessing": False,
                "ParsedResults": [{"ParsedText": "The causes of the war"}],
            })

        attempt = await OCRSpaceStrategy(config, mock_client(handler)).extract(png_image)
        assert attempt.text == "The causes of the war"
        assert seen["content_type"].startswith("multipart/form-data")
        assert b'name="apikey"' in seen["body"]
        assert b"helloworld" in seen["body"]
        assert b'name="OCREngine"' in seen["body"]
        assert b"data:image/png;base64," in seen["body"]

    async def test_processing_error(self, config, mock_client, png_image):
        client = mock_client(lambda request: httpx.Response(200, json={
            "IsErroredOnProcessing": True,
            "ErrorMessage": ["File failed validation"],
        }))
        attempt = await OCRSpaceStrategy(config, client).extract(png_image)
        assert attempt.text is None
        assert "File failed validation" in attempt.error

    async def test_no_results(self, config, mock_client, png_image):
        client = mock_client(lambda request: httpx.Response(200, json={"IsErroredOnProcessing": False}))
        attempt = await OCRSpaceStrategy(config, client).extract(png_image)
        assert not attempt.usable


class TestTesseractStrategy:
    async def test_single_block_mode(self, config, png_image, monkeypatch):
        seen = {}

        def fake_image_to_string(image, lang, config):
            seen["lang"] = lang
            seen["config"] = config
            seen["mode"] = image.mode
            return "printed words\n"

        monkeypatch.setattr(extraction_service.pytesseract, "image_to_string", fake_image_to_string)
        attempt = await TesseractStrategy(config).extract(png_image)
        assert attempt.text == "printed words\n"
        assert seen == {"lang": "eng", "config": "--psm 6", "mode": "RGB"}

    async def test_preprocessing_binarizes(self, config, png_image, monkeypatch):
        seen = {}

        def fake_image_to_string(image, lang, config):
            seen["mode"] = image.mode
            return "text"

        monkeypatch.setattr(extraction_service.pytesseract, "image_to_string", fake_image_to_string)
        preprocessing = config.model_copy(update={"ocr_preprocess": True})
        await TesseractStrategy(preprocessing).extract(png_image)
        assert seen["mode"] == "1"

    async def test_engine_missing(self, config, png_image, monkeypatch):
        def missing(*args, **kwargs):
            raise extraction_service.pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(extraction_service.pytesseract, "image_to_string", missing)
        attempt = await TesseractStrategy(config).extract(png_image)
        assert attempt.text is None
        assert attempt.error is not None

    async def test_not_an_image(self, config):
        image = ImageInputDTO(content=b"not really a png", media_type="image/png")
        attempt = await TesseractStrategy(config).extract(image)
        assert not attempt.usable


class TestExtractionCascade:
    async def test_short_circuits_on_first_usable(self, config, png_image):
        first = FakeStrategy(config, "first", "abcdef")
        second = FakeStrategy(config, "second", "second text")
        third = FakeStrategy(config, "third", "third text")

        attempt = await ExtractionService([first, second, third]).extract(png_image)

        assert attempt.text == "abcdef"
        assert attempt.strategy == "first"
        assert (first.calls, second.calls, third.calls) == (1, 0, 0)

    async def test_short_text_falls_through(self, config, png_image):
        first = FakeStrategy(config, "first", "abc")
        second = FakeStrategy(config, "second", None)
        third = FakeStrategy(config, "third", "local result")

        attempt = await ExtractionService([first, second, third]).extract(png_image)

        assert attempt.strategy == "third"
        assert (first.calls, second.calls, third.calls) == (1, 1, 1)

    async def test_all_strategies_exhausted(self, config, png_image):
        strategies = [
            FakeStrategy(config, "first", ""),
            FakeStrategy(config, "second", "    "),
            FakeStrategy(config, "third", "ab"),
        ]
        with pytest.raises(TextExtractionError, match="Could not extract text"):
            await ExtractionService(strategies).extract(png_image)

    async def test_crashing_strategy_does_not_abort(self, config, png_image):
        fallback = FakeStrategy(config, "fallback", "still readable")
        attempt = await ExtractionService([CrashingStrategy(config), fallback]).extract(png_image)
        assert attempt.strategy == "fallback"

    async def test_unsupported_media_type(self, config):
        strategy = FakeStrategy(config, "first", "abcdef")
        gif = ImageInputDTO(content=b"GIF89a", media_type="image/gif")
        with pytest.raises(UnsupportedImageError):
            await ExtractionService([strategy]).extract(gif)
        assert strategy.calls == 0

    async def test_progress_milestones(self, config, mock_client, png_image):
        def handler(request):
            if "trocr" in str(request.url):
                return httpx.Response(503)
            return httpx.Response(200, json={
                "IsErroredOnProcessing": False,
                "ParsedResults": [{"ParsedText": "remote ocr text"}],
            })

        client = mock_client(handler)
        service = ExtractionService([
            HandwritingOCRStrategy(config, client),
            OCRSpaceStrategy(config, client),
            TesseractStrategy(config),
        ])
        progress = []

        attempt = await service.extract(png_image, progress=progress.append)

        assert attempt.strategy == "ocr_space"
        assert progress == [10, 40, 90]

    async def test_local_fallback_progress(self, config, mock_client, png_image, monkeypatch):
        monkeypatch.setattr(
            extraction_service.pytesseract, "image_to_string", lambda image, lang, config: "local words",
        )
        client = mock_client(lambda request: httpx.Response(500))
        service = ExtractionService([
            HandwritingOCRStrategy(config, client),
            OCRSpaceStrategy(config, client),
            TesseractStrategy(config),
        ])
        progress = []

        attempt = await service.extract(png_image, progress=progress.append)

        assert attempt.text == "local words"
        assert progress == [10, 40, 60, 95]
