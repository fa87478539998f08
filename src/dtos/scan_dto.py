from dataclasses import dataclass, field
from enum import Enum

SUPPORTED_IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg", "image/webp"})

MIN_USABLE_CHARS = 5


class SegmentationMode(str, Enum):
    """How the analysed text is split into highlighted segments."""
    DOCUMENT = "document"
    SENTENCE = "sentence"


@dataclass(frozen=True)
class ImageInputDTO:
    content: bytes
    media_type: str
    filename: str | None = None


@dataclass(frozen=True)
class TextInputDTO:
    text: str


@dataclass(frozen=True)
class ExtractionAttemptDTO:
    """Outcome of one extraction strategy."""
    strategy: str
    text: str | None = None
    error: str | None = None
    min_chars: int = MIN_USABLE_CHARS

    @property
    def usable(self) -> bool:
        return self.text is not None and len(self.text.strip()) >= self.min_chars


@dataclass(frozen=True)
class VerdictDTO:
    score: int
    reason: str
    source: str


@dataclass
class SegmentDTO:
    text: str
    is_ai: bool


@dataclass
class AnalysisResultDTO:
    ai_percentage: int
    reasoning: str
    verdict_source: str
    segments: list[SegmentDTO] = field(default_factory=list)


@dataclass
class ScanResultDTO:
    extracted_text: str
    analysis: AnalysisResultDTO
    suggested_grade: str
    search_url: str
    strategy: str | None = None


@dataclass
class VisionResultDTO:
    extracted_text: str
    ai_percentage: int
    reasoning: str
    model_used: str
