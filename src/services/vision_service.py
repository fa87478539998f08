"""One-shot transcription and AI assessment of an assignment photo with Gemini."""
import asyncio
import json
import re

import google.generativeai as genai

from src.core.config import Config
from src.core.exceptions import MissingApiKeyError, UnsupportedImageError, VisionAnalysisError
from src.core.logging import get_logger
from src.dtos.scan_dto import SUPPORTED_IMAGE_TYPES, ImageInputDTO, VisionResultDTO

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?")

_PROMPT = """
You are an expert Assignment Checker.
Step 1: Read ALL text from this image exactly as it is written. Fix any obvious OCR errors but stay true to the image.
Step 2: Analyze the extraction. Does the writing style sound like an AI (ChatGPT/Claude) or a Human Student?

Look for:
- AI: "In conclusion", "It is important to note", overly structured lists, perfect grammar, robotic tone.
- Human: Natural flow, minor errors, conversational tone, personal opinion.

Return ONLY a valid JSON object (no markdown) with this structure:
{
    "extractedText": "The full text found in the image...",
    "aiLimit": 0 to 100 (where 100 is definitely AI, 0 is definitely handwritten human),
    "reasoning": "A short explanation of why you think so."
}
"""


def parse_vision_answer(raw: str) -> dict:
    """Strip markdown fences from the model answer and decode the JSON object."""
    cleaned = _CODE_FENCE.sub("", raw).strip()
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("vision answer is not a JSON object")
    return data


class VisionAnalysisService:
    """Alternative to the OCR cascade: the vision model reads and judges in one call."""

    def __init__(self, config: Config) -> None:
        self._config = config
        # genai.configure is process-global; hold this from configure until the answer arrives
        self._key_lock = asyncio.Lock()

    async def analyze(self, image: ImageInputDTO, api_key: str | None = None) -> VisionResultDTO:
        key = api_key or self._config.gemini_api_key
        if not key:
            raise MissingApiKeyError()
        if image.media_type not in SUPPORTED_IMAGE_TYPES:
            raise UnsupportedImageError(image.media_type)

        image_part = {"mime_type": image.media_type, "data": image.content}

        try:
            async with self._key_lock:
                genai.configure(api_key=key)
                model = genai.GenerativeModel(self._config.gemini_model)
                response = await model.generate_content_async([_PROMPT, image_part])
            data = parse_vision_answer(response.text)
        except Exception as e:
            logger.error(
                "vision_analysis_failed",
                model=self._config.gemini_model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise VisionAnalysisError(f"Analysis failed: {e}. Check API Key or Image.") from e

        try:
            score = int(round(float(data.get("aiLimit", 0))))
        except (TypeError, ValueError):
            score = 0

        return VisionResultDTO(
            extracted_text=str(data.get("extractedText", "")),
            ai_percentage=max(0, min(100, score)),
            reasoning=str(data.get("reasoning", "")),
            model_used=self._config.gemini_model,
        )
