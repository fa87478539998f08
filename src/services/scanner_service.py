"""End-to-end scan pipeline: extract text from an image (or take pasted text), then analyse it."""
from collections.abc import Callable

from src.core.logging import get_logger
from src.dtos.scan_dto import ImageInputDTO, ScanResultDTO, SegmentationMode, TextInputDTO
from src.services.detection_service import DetectionService
from src.services.extraction_service import ExtractionService, ProgressCallback
from src.utils.grading import build_search_url, suggest_grade

logger = get_logger(__name__)


class ScannerService:
    """Stateless pipeline; every call is an independent run."""

    def __init__(self, extraction: ExtractionService, detection: DetectionService) -> None:
        self._extraction = extraction
        self._detection = detection

    async def scan_image(
        self,
        image: ImageInputDTO,
        mode: SegmentationMode = SegmentationMode.DOCUMENT,
        progress: ProgressCallback | None = None,
        on_extracted: Callable[[str], None] | None = None,
    ) -> ScanResultDTO:
        """Extract text from the image, then analyse it.

        ``on_extracted`` is called with the accepted text before analysis
        starts. Raises TextExtractionError when no strategy produced usable
        text.
        """
        attempt = await self._extraction.extract(image, progress=progress)
        if on_extracted is not None:
            on_extracted(attempt.text)
        return await self._analyze(attempt.text, mode, strategy=attempt.strategy)

    async def scan_text(
        self,
        text_input: TextInputDTO,
        mode: SegmentationMode = SegmentationMode.DOCUMENT,
    ) -> ScanResultDTO:
        if not text_input.text.strip():
            raise ValueError("Pasted text is empty")
        return await self._analyze(text_input.text, mode, strategy=None)

    async def _analyze(
        self,
        text: str,
        mode: SegmentationMode,
        strategy: str | None,
    ) -> ScanResultDTO:
        analysis = await self._detection.analyze(text, mode)
        logger.info("scan_completed", strategy=strategy, chars=len(text), mode=mode.value)
        return ScanResultDTO(
            extracted_text=text,
            analysis=analysis,
            suggested_grade=suggest_grade(analysis.ai_percentage),
            search_url=build_search_url(text),
            strategy=strategy,
        )
