"""Verification result models.

The reasoning service returns ad hoc JSON. Results are always built over a
default-valued ``VerificationResult`` so missing fields never surface as
``None`` downstream.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import Field

from .base import BaseIRModel, CheckKind, VerdictStatus

# Keys the model has been seen to use for checks that deterministic
# validators own.
CHECK_KEY_ALIASES: dict[CheckKind, frozenset[str]] = {
    CheckKind.PAYMENT_RECENCY: frozenset({
        "payment_date_recent",
        "payment_recent",
        "payment_recency",
        "payment_fresh",
    }),
    CheckKind.FEE_AMOUNT: frozenset({
        "amount_correct",
        "fee_amount_correct",
        "amount_ok",
        "kwota_poprawna",
        "suma_zgodna",
    }),
    CheckKind.DOCUMENT_AGE: frozenset({
        "doc_date_recent",
        "doc_date_valid",
        "document_recent",
        "document_age",
        "doc_not_expired",
        "not_expired",
    }),
}


def classify_check_key(key: Optional[str]) -> CheckKind:
    """Map a check key to its kind. Unknown keys are model-owned."""
    if not key:
        return CheckKind.MODEL
    normalized = str(key).strip().lower()
    for kind, aliases in CHECK_KEY_ALIASES.items():
        if normalized in aliases:
            return kind
    return CheckKind.MODEL


class Check(BaseIRModel):
    """Single checklist item, produced by the model or a validator."""

    key: str = ""
    kind: CheckKind = Field(default=CheckKind.MODEL)
    title: str = ""
    required: bool = False
    passed: Optional[bool] = None
    details: Optional[str] = None

    class Config:
        populate_by_name = True
        extra = "allow"

    @property
    def label(self) -> str:
        return self.title or self.key


class ErrorItem(BaseIRModel):
    """Problem found in the document."""

    code: str = "UNKNOWN"
    title: str = ""
    detail: str = ""
    severity: str = "minor"


class Verdict(BaseIRModel):
    status: VerdictStatus = VerdictStatus.UNCERTAIN
    summary: str = ""


class VerificationResult(BaseIRModel):
    """
    Structured verdict for one document.

    Serialized with camelCase aliases (``fieldsExtracted``, ``docType``,
    ``ocrQuality``) to match the response contract.
    """

    verdict: Verdict = Field(default_factory=Verdict)
    errors: list[ErrorItem] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    fields_extracted: dict[str, Any] = Field(
        default_factory=dict, alias="fieldsExtracted"
    )
    checks: list[Check] = Field(default_factory=list)
    doc_type: Optional[str] = Field(default=None, alias="docType")
    ocr_quality: Optional[str] = Field(default=None, alias="ocrQuality")
    raw: Optional[str] = Field(default=None, description="Unparsed model output")

    def to_response(self) -> dict[str, Any]:
        """Serialize for callers."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def checks_of_kind(self, kind: CheckKind) -> list[Check]:
        return [c for c in self.checks if c.kind == kind]


@dataclass
class ParsedOk:
    """Reasoning output contained a JSON object."""

    fields: dict[str, Any]


@dataclass
class ParseFailed:
    """Reasoning output had no parseable JSON object."""

    raw_text: str
    reason: str = "no json"


ParseOutcome = Union[ParsedOk, ParseFailed]


@dataclass
class AnalysisContext:
    """Opaque caller context passed through to the analysis prompt."""

    citizenship: str = ""
    path: str = ""
    application_date: str = ""
    user_name: str = ""
    extras: dict[str, str] = field(default_factory=dict)
