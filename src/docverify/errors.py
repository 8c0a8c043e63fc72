"""Exception hierarchy for the ingestion and verification pipeline.

Every error carries a stable ``error_code`` and a non-technical message
suitable for end users. Local, per-page failures are caught inside the
pipeline; only errors with no fallback left reach the service facade, which
turns them into ``{"ok": false, "error": ...}`` responses.
"""

from typing import Any, Optional


class DocVerifyError(Exception):
    """Base exception for all pipeline errors."""

    error_code = "INTERNAL_ERROR"
    user_message = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the response shape returned to callers."""
        return {"ok": False, "error": self.message, "code": self.error_code}


class InvalidUpload(DocVerifyError):
    """Upload violates count, size or type constraints."""

    error_code = "INVALID_UPLOAD"
    user_message = "Invalid upload"


class UnsupportedDocument(DocVerifyError):
    """Input bytes cannot be parsed as a paged document."""

    error_code = "UNSUPPORTED_DOCUMENT"
    user_message = "Unsupported or damaged document"


class ImageProcessingError(DocVerifyError):
    """Codec or transform failure on a single image."""

    error_code = "IMAGE_PROCESSING_FAILED"
    user_message = "Image could not be processed"


class CompositionError(DocVerifyError):
    """No images were available to build a composite."""

    error_code = "COMPOSITION_FAILED"
    user_message = "No images to merge"


class ExtractionFailed(DocVerifyError):
    """No text could be obtained by any extraction strategy."""

    error_code = "TEXT_NOT_RECOGNIZED"
    user_message = "Text not recognized"


class RecognitionRefused(DocVerifyError):
    """Recognition output looked like a refusal. Handled internally by retry."""

    error_code = "RECOGNITION_REFUSED"
    user_message = "Recognition refused"


class AnalysisParseError(DocVerifyError):
    """Reasoning output did not contain valid JSON."""

    error_code = "ANALYSIS_PARSE_ERROR"
    user_message = "Could not parse analysis result"


class ReasoningServiceError(DocVerifyError):
    """The reasoning service call failed."""

    error_code = "REASONING_SERVICE_ERROR"
    user_message = "Reasoning service unavailable"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        rate_limited: bool = False,
    ):
        super().__init__(message, details)
        self.rate_limited = rate_limited


class RulesUnavailable(DocVerifyError):
    """Rule set files are missing or malformed."""

    error_code = "RULES_UNAVAILABLE"
    user_message = "Verification rules are not available"
