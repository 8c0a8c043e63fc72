"""IR models for the verification pipeline.

Every model lives for a single request: documents, pages, tiles and
intermediate images are created, transformed and discarded without
persistence.

Model flow:
- SourceDocument -> RasterPage -> ImageTile -> RecognitionBatch
- ExtractedText -> VerificationResult (checks, errors, verdict)
- RuleSet -> DocTypeRules, FeeTable
"""

from .base import (
    BaseIRModel,
    CheckKind,
    ExtractionSource,
    ExtractionState,
    OCRMode,
    Orientation,
    Severity,
    VerdictStatus,
)
from .document import (
    PDF_MIME,
    ImageTile,
    RasterPage,
    SourceDocument,
)
from .extraction import (
    ExtractedText,
    ExtractionProvenance,
    RecognitionBatch,
)
from .rules import (
    DocTypeRules,
    FeeItem,
    FeeTable,
    RuleSet,
)
from .verification import (
    AnalysisContext,
    Check,
    ErrorItem,
    ParsedOk,
    ParseFailed,
    ParseOutcome,
    Verdict,
    VerificationResult,
    classify_check_key,
)

__all__ = [
    # Base types
    "BaseIRModel",
    "CheckKind",
    "ExtractionSource",
    "ExtractionState",
    "OCRMode",
    "Orientation",
    "Severity",
    "VerdictStatus",
    # Documents
    "PDF_MIME",
    "ImageTile",
    "RasterPage",
    "SourceDocument",
    # Extraction
    "ExtractedText",
    "ExtractionProvenance",
    "RecognitionBatch",
    # Rules
    "DocTypeRules",
    "FeeItem",
    "FeeTable",
    "RuleSet",
    # Verification
    "AnalysisContext",
    "Check",
    "ErrorItem",
    "ParsedOk",
    "ParseFailed",
    "ParseOutcome",
    "Verdict",
    "VerificationResult",
    "classify_check_key",
]
