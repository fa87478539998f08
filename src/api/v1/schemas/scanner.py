from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.dtos.scan_dto import ScanResultDTO, SegmentationMode, VisionResultDTO


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextScanRequest(BaseModel):
    text: str = Field(min_length=1)
    segmentation: SegmentationMode = SegmentationMode.DOCUMENT


class Segment(_CamelModel):
    text: str
    is_ai: bool


class ScanResponse(_CamelModel):
    extracted_text: str
    ai_percentage: int = Field(ge=0, le=100)
    reasoning: str
    segments: list[Segment]
    suggested_grade: str
    search_url: str
    strategy: str | None = None

    @classmethod
    def from_dto(cls, dto: ScanResultDTO) -> "ScanResponse":
        return cls(
            extracted_text=dto.extracted_text,
            ai_percentage=dto.analysis.ai_percentage,
            reasoning=dto.analysis.reasoning,
            segments=[Segment(text=s.text, is_ai=s.is_ai) for s in dto.analysis.segments],
            suggested_grade=dto.suggested_grade,
            search_url=dto.search_url,
            strategy=dto.strategy,
        )


class VisionResponse(_CamelModel):
    extracted_text: str
    ai_percentage: int = Field(ge=0, le=100)
    reasoning: str
    model_used: str

    @classmethod
    def from_dto(cls, dto: VisionResultDTO) -> "VisionResponse":
        return cls(
            extracted_text=dto.extracted_text,
            ai_percentage=dto.ai_percentage,
            reasoning=dto.reasoning,
            model_used=dto.model_used,
        )
