"""
Domain exceptions raised by the scanning pipeline.

Only these reach the HTTP layer; intermediate degradations (a failed OCR
strategy, an unreachable classifier) are absorbed inside the services.
"""

EXTRACTION_FAILED_MSG = (
    "Could not extract text. Please ensure the image is clear and contains readable text."
)


class ScannerError(Exception):
    """Base class for scanner errors."""


class TextExtractionError(ScannerError):
    """Every extraction strategy was exhausted without usable text."""

    def __init__(self, message: str = EXTRACTION_FAILED_MSG) -> None:
        super().__init__(message)


class UnsupportedImageError(ScannerError):
    """The uploaded file is not a supported raster image."""

    def __init__(self, media_type: str | None) -> None:
        self.media_type = media_type
        super().__init__(f"Unsupported image type: {media_type or 'unknown'}")


class VisionAnalysisError(ScannerError):
    """The vision model call failed or returned an unparseable answer."""


class MissingApiKeyError(ScannerError):
    """No vision API key in the request and none configured."""

    def __init__(self) -> None:
        super().__init__("API Key required")
