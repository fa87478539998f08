from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / '.env'

_HF_INFERENCE = "https://api-inference.huggingface.co/models"


class Config(BaseSettings):
    app_name: str = "Assignment Scanner"
    debug: bool = True

    # Outbound HTTP
    http_timeout: float | None = 60.0
    hf_api_token: str | None = None

    # Extraction cascade
    handwriting_ocr_url: str = f"{_HF_INFERENCE}/microsoft/trocr-base-handwritten"
    ocr_space_url: str = "https://api.ocr.space/parse/image"
    ocr_space_api_key: str = "helloworld"  # public demo key
    ocr_language: str = "eng"
    ocr_engine: str = "2"
    tesseract_cmd: str | None = None
    tesseract_psm: int = 6
    ocr_preprocess: bool = False
    ocr_threshold: int = 128
    min_usable_chars: int = 5

    # Remote classifiers
    general_classifier_url: str = f"{_HF_INFERENCE}/openai-community/roberta-base-openai-detector"
    chatgpt_classifier_url: str = f"{_HF_INFERENCE}/Hello-SimpleAI/chatgpt-detector-roberta"
    classifier_max_chars: int = 510

    # Vision analysis
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    @computed_field
    @property
    def hf_headers(self) -> dict[str, str]:
        if not self.hf_api_token:
            return {}
        return {"Authorization": f"Bearer {self.hf_api_token}"}


config = Config()
