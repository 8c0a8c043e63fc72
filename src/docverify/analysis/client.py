"""Document analysis through the reasoning service.

Builds one request per document: the rule set's base prompt as the system
directive, then context, schema, checklist, fee table, OCR text and an
optional composite image as user parts. The reply is parsed leniently and
overlaid on a default-valued result.
"""

import json
import logging
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError

from docverify.analysis.fees import strip_diacritics
from docverify.clients.base import ReasoningService
from docverify.config import settings
from docverify.errors import AnalysisParseError
from docverify.models import (
    AnalysisContext,
    Check,
    ErrorItem,
    ExtractedText,
    ParsedOk,
    ParseFailed,
    ParseOutcome,
    RuleSet,
    Severity,
    Verdict,
    VerdictStatus,
    VerificationResult,
    classify_check_key,
)

logger = logging.getLogger(__name__)

EXTRACTION_HINT = """TO EXTRACT (when present in the document or scans):
- Passport: passport_stamps[] (date, country, stamp type).
- Application form: wniosek_trips[] (date, destination, purpose).
- Employment package: fields from Annex 1 and the contract, cross-checked.
- PIT: names, PESEL, NIP of the taxpayer and spouse, amounts."""

RESPONSE_RULES = (
    "Return STRICT JSON per schema. If data insufficient: set passed=false "
    "with helpful fixTip. If language != PL: advise sworn translation."
)


def canonical_doc_type(doc_type: str) -> str:
    """``Opłata_Skarbowa`` -> ``oplata_skarbowa``."""
    return strip_diacritics((doc_type or "").strip().lower())


def decode_json_object(raw_text: str) -> dict[str, Any]:
    """Decode the first balanced JSON object in ``raw_text``.

    Prose and code fences around the object are ignored, including any
    trailing text that itself contains braces.

    Raises:
        AnalysisParseError: If there is no ``{`` or the object does not decode.
    """
    start = raw_text.find("{")
    if start < 0:
        raise AnalysisParseError("no json")
    try:
        decoded, _ = json.JSONDecoder().raw_decode(raw_text, start)
    except json.JSONDecodeError as exc:
        raise AnalysisParseError("parse error", details={"reason": str(exc)}) from exc
    return decoded


def parse_response(raw_text: str) -> ParseOutcome:
    """Tagged parse of a reasoning reply."""
    try:
        return ParsedOk(fields=decode_json_object(raw_text or ""))
    except AnalysisParseError as e:
        return ParseFailed(raw_text=raw_text or "", reason=e.message)


def _coerce_status(value: Any) -> VerdictStatus:
    try:
        return VerdictStatus(str(value).strip().lower())
    except ValueError:
        return VerdictStatus.UNCERTAIN


def _coerce_verdict(fields: dict[str, Any]) -> Verdict:
    verdict = fields.get("verdict")
    if isinstance(verdict, dict):
        return Verdict(
            status=_coerce_status(verdict.get("status")),
            summary=str(verdict.get("summary") or fields.get("message") or ""),
        )
    if isinstance(verdict, str):
        return Verdict(status=_coerce_status(verdict), summary=str(fields.get("message") or ""))
    return Verdict()


def _coerce_errors(items: Any) -> list[ErrorItem]:
    errors = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        severity = str(item.get("severity") or Severity.MINOR.value).lower()
        if severity not in {s.value for s in Severity}:
            severity = Severity.MINOR.value
        errors.append(
            ErrorItem(
                code=str(item.get("code") or "UNKNOWN"),
                title=str(item.get("title") or ""),
                detail=str(item.get("detail") or ""),
                severity=severity,
            )
        )
    return errors


_TRUE_WORDS = frozenset({"true", "yes", "pass", "passed", "ok"})
_FALSE_WORDS = frozenset({"false", "no", "fail", "failed"})


def _coerce_flag(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def _coerce_checks(items: Any) -> list[Check]:
    checks = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        key = str(item.get("key") or "")
        details = item.get("details")
        data = {
            **item,
            "key": key,
            "kind": classify_check_key(key),
            "title": str(item.get("title") or ""),
            "required": _coerce_flag(item.get("required")) is True,
            "passed": _coerce_flag(item.get("passed")),
            "details": None if details is None else str(details),
        }
        try:
            checks.append(Check(**data))
        except ValidationError as e:
            logger.warning("Dropping malformed check %r: %s", key, e)
    return checks


def build_result(outcome: ParseOutcome, doc_type: str) -> VerificationResult:
    """Overlay a parse outcome on a default-valued result."""
    if isinstance(outcome, ParseFailed):
        return VerificationResult(
            verdict=Verdict(status=VerdictStatus.UNCERTAIN, summary=outcome.reason),
            doc_type=doc_type,
            raw=outcome.raw_text,
        )

    fields = outcome.fields
    extracted = fields.get("fieldsExtracted", fields.get("fields_extracted"))
    recommendations = fields.get("recommendations")

    return VerificationResult(
        verdict=_coerce_verdict(fields),
        errors=_coerce_errors(fields.get("errors")),
        recommendations=[
            str(r) for r in (recommendations if isinstance(recommendations, list) else [])
        ],
        fields_extracted=dict(extracted) if isinstance(extracted, dict) else {},
        checks=_coerce_checks(fields.get("checks")),
        doc_type=doc_type,
        ocr_quality=fields.get("ocrQuality") or fields.get("ocr_quality"),
    )


class DocumentAnalysisClient:
    """Turns extracted text and rules into a structured verdict."""

    def __init__(
        self,
        service: ReasoningService,
        rules: RuleSet,
        text_limit: int = None,
    ):
        """Initialize client.

        Args:
            service: Reasoning service used for the analysis call.
            rules: Rule set supplying prompt, schema, checklists and fees.
            text_limit: Maximum OCR characters sent (default from settings).
        """
        self.service = service
        self.rules = rules
        self.text_limit = text_limit or settings.analysis_text_limit

    def build_parts(
        self,
        text: str,
        doc_type: str,
        context: AnalysisContext,
    ) -> list[str]:
        """Text parts of the user message, in request order."""
        application_date = context.application_date or date.today().isoformat()
        parts = [
            "\n".join(
                [
                    f"docType: {doc_type}",
                    f"citizenship: {context.citizenship or 'unknown'}",
                    f"path: {context.path or 'general'}",
                    f"applicationDate: {application_date}",
                    f"userName: {context.user_name or ''}",
                    *(f"{key}: {value}" for key, value in context.extras.items()),
                    EXTRACTION_HINT,
                    RESPONSE_RULES,
                ]
            ),
            f"SCHEMA:\n{json.dumps(self.rules.response_schema, ensure_ascii=False)}",
            "CHECKLIST FOR TYPE:\n"
            + json.dumps(self.rules.rules_for(doc_type).checklist(), ensure_ascii=False, indent=2),
        ]
        if not self.rules.fees.is_empty:
            parts.append(
                "FEES_TABLE:\n"
                + json.dumps(self.rules.fees.model_dump(mode="json"), ensure_ascii=False, indent=2)
            )
        if text and text.strip():
            parts.append(f"OCR_TEXT (raw):\n{text[: self.text_limit]}")
        return parts

    def analyze(
        self,
        extracted: Optional[ExtractedText],
        doc_type: str,
        context: Optional[AnalysisContext] = None,
        composite_image: Optional[bytes] = None,
    ) -> VerificationResult:
        """Run one analysis call and return the parsed result.

        A reply without valid JSON yields an ``uncertain`` verdict with the
        raw reply attached.
        """
        context = context or AnalysisContext()
        doc_type = canonical_doc_type(doc_type)
        text = extracted.text if extracted else ""
        image = composite_image
        if image is None and extracted is not None:
            image = extracted.composite_image

        parts = self.build_parts(text, doc_type, context)
        raw = self.service.analyze(
            self.rules.base_prompt,
            parts,
            images=[image] if image else [],
        )

        outcome = parse_response(raw)
        if isinstance(outcome, ParseFailed):
            logger.warning("Analysis reply not parseable (%s), %d chars", outcome.reason, len(raw or ""))
        return build_result(outcome, doc_type)
