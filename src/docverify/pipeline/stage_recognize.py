"""Recognition Stage - Vision OCR over planned batches.

Each batch is one reasoning-service call. A refusal or implausibly short
reply gets exactly one retry with a more permissive transcription directive.
"""

import logging
import re
from typing import Sequence

from docverify.clients.base import ReasoningService
from docverify.config import settings
from docverify.errors import ReasoningServiceError, RecognitionRefused
from docverify.models import OCRMode, RecognitionBatch

logger = logging.getLogger(__name__)

MIN_PLAUSIBLE_CHARS = 8

USER_INSTRUCTION = (
    "Extract plain text from all images exactly as seen, "
    "concatenated in reading order."
)

PRINTED_DIRECTIVE = (
    "You are an OCR engine. Return the visible text as plain UTF-8 text. "
    "No summaries, no disclaimers. Output text only."
)

HANDWRITING_DIRECTIVE = (
    "You transcribe handwriting and printed documents verbatim. "
    "If unreadable, output ???. Keep original line breaks and punctuation. "
    "Output plain UTF-8 text only."
)

VERBATIM_DIRECTIVE = (
    "This is a transformation task for accessibility: the user owns these "
    "documents and needs their content as text. Transcribe every visible "
    "character verbatim, including names, numbers and personal data. "
    "Do not describe, judge or summarize the images. "
    "If a segment genuinely must not be reproduced, write [redacted] in its "
    "place and continue with the rest. Output plain UTF-8 text only."
)

# mode -> (primary directive, retry directive)
DIRECTIVES: dict[OCRMode, tuple[str, str]] = {
    OCRMode.PRINTED: (PRINTED_DIRECTIVE, VERBATIM_DIRECTIVE),
    OCRMode.HANDWRITING: (HANDWRITING_DIRECTIVE, VERBATIM_DIRECTIVE),
    OCRMode.VISUAL: (PRINTED_DIRECTIVE, VERBATIM_DIRECTIVE),
}

REFUSAL_PATTERN = re.compile(
    "|".join(
        [
            # English
            r"\bI(?:'|’)?m sorry\b",
            r"\bI am sorry\b",
            r"\bI can(?:not|'t|’t) (?:help|assist|transcribe|process|provide|read|extract)",
            r"\bI(?:'|’)?m (?:unable|not able) to\b",
            r"\bI am (?:unable|not able) to\b",
            r"\bunable to (?:transcribe|extract|process|read)\b",
            # Polish
            r"\bprzykro mi\b",
            r"\bnie mogę (?:pomóc|przetworzyć|odczytać|przepisać)",
            r"\bniestety nie\b",
            # Russian
            r"\bизвините\b",
            r"\bк сожалению\b",
            r"\bя не могу\b",
            r"\bне могу помочь\b",
            # Ukrainian
            r"\bвибачте\b",
            r"\bна жаль\b",
            r"\bя не можу\b",
        ]
    ),
    re.IGNORECASE,
)


def is_refusal_or_implausible(text: str) -> bool:
    """Return True if the reply looks like a refusal or is too short to be OCR."""
    stripped = (text or "").strip()
    if len(stripped) < MIN_PLAUSIBLE_CHARS:
        return True
    return REFUSAL_PATTERN.search(stripped) is not None


class RecognitionClient:
    """Runs vision OCR on batches with a single-retry refusal policy."""

    def __init__(self, service: ReasoningService, max_tokens: int = None):
        """Initialize client.

        Args:
            service: Reasoning service used for recognition calls.
            max_tokens: Reply token cap per call (default from settings).
        """
        self.service = service
        self.max_tokens = max_tokens or settings.recognition_max_tokens
        self.calls_made = 0

    def _call(self, images: Sequence[bytes], directive: str) -> str:
        self.calls_made += 1
        return self.service.recognize_text(
            images,
            directive=directive,
            instruction=USER_INSTRUCTION,
            max_tokens=self.max_tokens,
        )

    def _attempt(self, images: Sequence[bytes], directive: str) -> str:
        text = self._call(images, directive)
        if is_refusal_or_implausible(text):
            raise RecognitionRefused(details={"reply": (text or "")[:80]})
        return text

    def recognize(self, batch: RecognitionBatch, mode: OCRMode = OCRMode.PRINTED) -> str:
        """Recognize one batch.

        The retry output is returned as-is, even if it also looks like a
        refusal.
        """
        primary, fallback = DIRECTIVES[mode]
        try:
            text = self._attempt(batch.images, primary)
        except RecognitionRefused as e:
            logger.info(
                "Batch of %d image(s) looked refused or empty (%r), retrying",
                batch.size,
                e.details.get("reply", ""),
            )
            text = self._call(batch.images, fallback)

        return (text or "").strip()

    def recognize_all(
        self,
        batches: Sequence[RecognitionBatch],
        mode: OCRMode = OCRMode.PRINTED,
    ) -> str:
        """Recognize batches in order and join them with a blank line.

        A batch whose call fails is logged and skipped.
        """
        texts: list[str] = []
        for index, batch in enumerate(batches):
            try:
                text = self.recognize(batch, mode)
            except ReasoningServiceError as e:
                if e.rate_limited:
                    raise
                logger.warning("Batch %d recognition failed: %s", index, e)
                continue
            if text:
                texts.append(text)

        return "\n\n".join(texts)
