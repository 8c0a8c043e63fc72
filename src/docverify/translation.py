"""Document and text translation through the reasoning service."""

import logging
from typing import Optional

from docverify.clients.base import ReasoningService
from docverify.config import settings
from docverify.errors import InvalidUpload
from docverify.models import SourceDocument
from docverify.pipeline.stage_text import TextLayerReader

logger = logging.getLogger(__name__)

PART_SEPARATOR = "\n\n---\n\n"
SCAN_ONLY_PLACEHOLDER = (
    "[PDF: no text could be extracted (looks like a scan without a text "
    "layer). Try uploading a photo or screenshot of the page.]"
)


class Translator:
    """Translates an image, a PDF's text layer and/or plain text."""

    def __init__(
        self,
        service: ReasoningService,
        reader: Optional[TextLayerReader] = None,
        model: str = None,
        text_limit: int = None,
    ):
        self.service = service
        self.reader = reader or TextLayerReader()
        self.model = model or settings.translation_model
        self.text_limit = text_limit or settings.translation_text_limit

    def _ask(self, system: str, parts: list[str], images: list[bytes] = None) -> str:
        reply = self.service.analyze(system, parts, images=images or [], model=self.model)
        return (reply or "").strip()

    def translate_image(self, image: bytes, source: str, target: str) -> str:
        system = (
            f"You are a precise translator. Detect source language ({source} if "
            f"specified) and translate to {target}. Keep formatting (line breaks, "
            "lists). Return only the translation."
        )
        return self._ask(system, ["Read this image document and translate it."], [image])

    def translate_pdf(self, content: bytes, source: str, target: str) -> str:
        """Translate the PDF text layer; scans get a placeholder instead."""
        text = self.reader.embedded_text(content)
        if not text:
            try:
                text = self.reader.structured_text(content)
            except Exception as e:
                logger.warning("Structured text read failed: %s", e)
        if not text:
            return SCAN_ONLY_PLACEHOLDER
        system = (
            f"Translate the text from {source} to {target}. Keep layout where "
            "reasonable. Return only the translated text."
        )
        return self._ask(system, [text[: self.text_limit]])

    def translate_text(self, text: str, source: str, target: str) -> str:
        system = (
            f"Translate the text from {source} to {target}. Preserve line breaks "
            "and lists. Return only the translated text."
        )
        return self._ask(system, [text[: self.text_limit]])

    def translate(
        self,
        document: Optional[SourceDocument] = None,
        text: str = "",
        source: str = "auto",
        target: str = "ru",
    ) -> str:
        """Translate everything given and join the parts.

        Raises:
            InvalidUpload: If the document type is unsupported or nothing was given.
            UnsupportedDocument: If the PDF cannot be opened.
        """
        source = source or "auto"
        target = target or "ru"
        parts: list[str] = []

        if document is not None:
            if document.is_image:
                parts.append(self.translate_image(document.content, source, target))
            elif document.is_pdf:
                parts.append(self.translate_pdf(document.content, source, target))
            else:
                raise InvalidUpload("Unsupported file type")

        if text and text.strip():
            parts.append(self.translate_text(text, source, target))

        if not parts:
            raise InvalidUpload("Nothing to translate")

        logger.info("Translated %d part(s) to %s", len(parts), target)
        return PART_SEPARATOR.join(p for p in parts if p)
