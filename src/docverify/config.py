"""Configuration management for the document verification service."""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Reasoning service
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "OPENAI_API_KEY",
            "OPEN_API_KEY",
            "OPEN_AI_KEY",
            "OPENAI_KEY",
            "OPENAI",
        ),
    )
    recognition_model: str = "gpt-4o"
    analysis_model: str = "gpt-4o-mini"
    translation_model: str = "gpt-4o-mini"
    request_timeout: float = 120.0
    recognition_max_tokens: int = 1400
    analysis_temperature: float = 0.1

    # Upload limits
    max_files: int = 20
    max_upload_bytes: int = 35 * MIB

    # Extraction
    max_pdf_pages: int = 20
    max_render_pages: int = 10
    batch_payload_budget: int = 45 * MIB
    min_text_chars: int = 500
    printed_scale: float = 2.0
    handwriting_scale: float = 3.0
    printed_max_width: int = 2200
    detect_orientation: bool = False

    # Rules
    rules_dir: Optional[str] = None

    # Prompt sizing
    analysis_text_limit: int = 20000
    translation_text_limit: int = 200000

    # Logging
    log_level: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        """Check whether a reasoning service key is configured."""
        return bool(self.openai_api_key)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
