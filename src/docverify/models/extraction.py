"""Recognition and extraction result models."""

from typing import Optional

from pydantic import Field

from .base import BaseIRModel, ExtractionSource, OCRMode


class RecognitionBatch(BaseIRModel):
    """Ordered image payloads sent in one recognition call."""

    images: list[bytes] = Field(default_factory=list, repr=False)
    estimated_bytes: int = Field(default=0, ge=0)

    @property
    def size(self) -> int:
        return len(self.images)


class ExtractionProvenance(BaseIRModel):
    """Diagnostic counters describing how the text was obtained."""

    source: ExtractionSource = Field(default=ExtractionSource.NONE)
    mode: OCRMode = Field(default=OCRMode.PRINTED)
    embedded_length: int = 0
    structured_length: int = 0
    pages_rendered: int = 0
    pages_skipped: int = 0
    tiles_produced: int = 0
    batches_sent: int = 0
    chars_recognized: int = 0


class ExtractedText(BaseIRModel):
    """
    Best available reading of a document.

    ``composite_image`` is a JPEG stack of the first pages, attached for
    visual checks (signatures, stamps) when it could be built.
    """

    text: str = ""
    provenance: ExtractionProvenance = Field(default_factory=ExtractionProvenance)
    composite_image: Optional[bytes] = Field(default=None, repr=False)

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def used_vision(self) -> bool:
        return self.provenance.batches_sent > 0
