"""OpenAI adapter for the ReasoningService protocol.

Uses chat completions with multimodal content parts; images travel as
base64 data URLs.
"""

import logging
from typing import Any, Optional, Sequence

import openai
from openai import OpenAI

from docverify.clients.base import to_data_url
from docverify.config import settings
from docverify.errors import ReasoningServiceError

logger = logging.getLogger(__name__)


def _raise_service_error(exc: Exception) -> None:
    rate_limited = isinstance(exc, openai.RateLimitError)
    details: dict[str, Any] = {"reason": str(exc)}
    status = getattr(exc, "status_code", None)
    if status is not None:
        details["http_code"] = status
    raise ReasoningServiceError(
        "Reasoning service quota exceeded" if rate_limited else "Reasoning service call failed",
        details=details,
        rate_limited=rate_limited,
    ) from exc


class OpenAIReasoningService:
    """Vision and text completions through the OpenAI API."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        recognition_model: str = None,
        analysis_model: str = None,
        temperature: float = None,
    ):
        """Initialize adapter.

        Args:
            client: Preconfigured OpenAI client (built from settings if None).
            recognition_model: Model used for OCR calls.
            analysis_model: Default model for analysis calls.
            temperature: Sampling temperature for analysis calls.
        """
        self.client = client or OpenAI(
            api_key=settings.openai_api_key or None,
            timeout=settings.request_timeout,
        )
        self.recognition_model = recognition_model or settings.recognition_model
        self.analysis_model = analysis_model or settings.analysis_model
        self.temperature = (
            settings.analysis_temperature if temperature is None else temperature
        )

    def _complete(self, **kwargs: Any) -> str:
        try:
            response = self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            logger.warning("Completion call failed: %s", exc)
            _raise_service_error(exc)

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

    def recognize_text(
        self,
        images: Sequence[bytes],
        directive: str,
        instruction: str,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Transcribe all images in one call, in reading order."""
        content: list[dict[str, Any]] = [{"type": "text", "text": instruction}]
        content.extend(
            {"type": "image_url", "image_url": {"url": to_data_url(img)}}
            for img in images
        )
        return self._complete(
            model=self.recognition_model,
            temperature=0,
            max_tokens=max_tokens or settings.recognition_max_tokens,
            messages=[
                {"role": "system", "content": directive},
                {"role": "user", "content": content},
            ],
        )

    def analyze(
        self,
        system: str,
        parts: Sequence[str],
        images: Sequence[bytes] = (),
        model: Optional[str] = None,
    ) -> str:
        """Submit text parts and optional images; return the raw reply."""
        content: list[dict[str, Any]] = [{"type": "text", "text": part} for part in parts]
        content.extend(
            {"type": "image_url", "image_url": {"url": to_data_url(img)}}
            for img in images
        )
        return self._complete(
            model=model or self.analysis_model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": content},
            ],
        )
