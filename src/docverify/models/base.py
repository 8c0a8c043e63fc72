"""Base models and common types for the verification pipeline."""

from enum import Enum

from pydantic import BaseModel


class OCRMode(str, Enum):
    """Preprocessing and recognition mode for raster images."""

    PRINTED = "printed"
    HANDWRITING = "handwriting"
    VISUAL = "visual"  # composite shown to the analysis call, not recognized


class Orientation(int, Enum):
    """Image orientation in degrees."""

    DEG_0 = 0
    DEG_90 = 90
    DEG_180 = 180
    DEG_270 = 270


class ExtractionState(str, Enum):
    """States of the text extraction state machine."""

    TRY_EMBEDDED_TEXT = "try_embedded_text"
    TRY_STRUCTURED_TEXT = "try_structured_text"
    NEEDS_VISUAL_OCR = "needs_visual_ocr"
    DONE = "done"


class ExtractionSource(str, Enum):
    """Which strategy produced the final text."""

    EMBEDDED = "embedded"
    STRUCTURED = "structured"
    VISION = "vision"
    NONE = "none"


class VerdictStatus(str, Enum):
    """Overall verification outcome."""

    PASS = "pass"
    FAIL = "fail"
    UNCERTAIN = "uncertain"


class Severity(str, Enum):
    """Severity of a reported document error."""

    CRITICAL = "critical"  # document invalid
    MAJOR = "major"  # unusable without fixes
    MINOR = "minor"  # cosmetic


class CheckKind(str, Enum):
    """Kinds of checks, used to de-duplicate deterministic checks."""

    PAYMENT_RECENCY = "payment_recency"
    DOCUMENT_AGE = "document_age"
    FEE_AMOUNT = "fee_amount"
    MODEL = "model"


class BaseIRModel(BaseModel):
    """Base class for all in-request models."""

    class Config:
        populate_by_name = True
