from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, File, Form, UploadFile

from src.api.v1.schemas.scanner import ScanResponse, TextScanRequest, VisionResponse
from src.dtos.scan_dto import ImageInputDTO, SegmentationMode, TextInputDTO
from src.services.scan_session import ScanSession
from src.services.vision_service import VisionAnalysisService

router = APIRouter(
    route_class=DishkaRoute,
    prefix="/api/v1/scanner",
    tags=["Scanner"],
)


async def _read_image(file: UploadFile) -> ImageInputDTO:
    content = await file.read()
    return ImageInputDTO(
        content=content,
        media_type=(file.content_type or "").lower(),
        filename=file.filename,
    )


@router.post("/text", response_model=ScanResponse, response_model_by_alias=True)
async def scan_text(
    request: TextScanRequest,
    session: FromDishka[ScanSession],
) -> ScanResponse:
    """Estimate how likely pasted text is AI-generated."""
    result = await session.scan_text(TextInputDTO(text=request.text), request.segmentation)
    return ScanResponse.from_dto(result)


@router.post("/image", response_model=ScanResponse, response_model_by_alias=True)
async def scan_image(
    session: FromDishka[ScanSession],
    file: UploadFile = File(...),
    segmentation: SegmentationMode = Form(SegmentationMode.DOCUMENT),
) -> ScanResponse:
    """Extract text from an assignment photo, then estimate AI likelihood."""
    image = await _read_image(file)
    result = await session.scan_image(image, segmentation)
    return ScanResponse.from_dto(result)


@router.post("/vision", response_model=VisionResponse, response_model_by_alias=True)
async def scan_vision(
    service: FromDishka[VisionAnalysisService],
    file: UploadFile = File(...),
    api_key: str | None = Form(None),
) -> VisionResponse:
    """Let the vision model transcribe and assess the photo in a single call."""
    image = await _read_image(file)
    result = await service.analyze(image, api_key)
    return VisionResponse.from_dto(result)
