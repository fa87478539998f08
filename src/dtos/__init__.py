"""
Data Transfer Objects (DTOs) package.

DTOs are simple dataclasses used to transfer data between layers.
"""

from src.dtos.scan_dto import (
    AnalysisResultDTO,
    ExtractionAttemptDTO,
    ImageInputDTO,
    ScanResultDTO,
    SegmentationMode,
    SegmentDTO,
    TextInputDTO,
    VerdictDTO,
    VisionResultDTO,
)

__all__ = [
    "AnalysisResultDTO",
    "ExtractionAttemptDTO",
    "ImageInputDTO",
    "ScanResultDTO",
    "SegmentationMode",
    "SegmentDTO",
    "TextInputDTO",
    "VerdictDTO",
    "VisionResultDTO",
]
