"""ReasoningService protocol: the black-box vision/LLM capability."""

from __future__ import annotations

import base64
from typing import Optional, Protocol, Sequence


class ReasoningService(Protocol):
    """Abstraction over the vision-capable reasoning service."""

    def recognize_text(
        self,
        images: Sequence[bytes],
        directive: str,
        instruction: str,
        max_tokens: Optional[int] = None,
    ) -> str: ...

    def analyze(
        self,
        system: str,
        parts: Sequence[str],
        images: Sequence[bytes] = (),
        model: Optional[str] = None,
    ) -> str: ...


def sniff_image_mime(payload: bytes) -> str:
    """Guess an image MIME type from magic bytes."""
    if payload.startswith(b"\x89PNG"):
        return "image/png"
    if payload.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if payload[:4] == b"RIFF" and payload[8:12] == b"WEBP":
        return "image/webp"
    if payload[:3] == b"GIF":
        return "image/gif"
    return "image/png"


def to_data_url(payload: bytes, mime_type: Optional[str] = None) -> str:
    """Encode image bytes as a base64 data URL."""
    mime = mime_type or sniff_image_mime(payload)
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"
