"""Document analysis and deterministic post-validation."""

from .amounts import parse_amount
from .client import DocumentAnalysisClient, build_result, canonical_doc_type, parse_response
from .dates import days_between, parse_date
from .fees import resolve_purpose, strip_diacritics
from .quality import estimate_ocr_quality
from .validators import VALIDATORS, PostValidator

__all__ = [
    "DocumentAnalysisClient",
    "PostValidator",
    "VALIDATORS",
    "build_result",
    "canonical_doc_type",
    "days_between",
    "estimate_ocr_quality",
    "parse_amount",
    "parse_date",
    "parse_response",
    "resolve_purpose",
    "strip_diacritics",
]
