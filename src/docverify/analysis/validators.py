"""Deterministic post-validators.

The reasoning service is not trusted with date arithmetic or fee lookups.
Each validator replaces the model's checks of its kind with a computed one.
Which validators run is declared per document type in the rule set.

Validators mutate the result in place and are idempotent: running the same
set twice leaves the result unchanged.
"""

import logging
from datetime import date
from typing import Callable, Optional

from docverify.analysis.amounts import parse_amount
from docverify.analysis.dates import days_between, parse_date
from docverify.analysis.fees import resolve_purpose
from docverify.models import (
    AnalysisContext,
    Check,
    CheckKind,
    RuleSet,
    Verdict,
    VerdictStatus,
    VerificationResult,
)

logger = logging.getLogger(__name__)

PAYMENT_RECENCY_DAYS = 60
DOCUMENT_AGE_MONTHS = 12

Validator = Callable[[VerificationResult, AnalysisContext, RuleSet, date], None]


def _replace_checks(result: VerificationResult, check: Check) -> None:
    """Drop checks of ``check.kind`` and put ``check`` where the first one was."""
    position = None
    kept = []
    for existing in result.checks:
        if existing.kind == check.kind:
            if position is None:
                position = len(kept)
            continue
        kept.append(existing)

    if position is None:
        kept.append(check)
    else:
        kept.insert(position, check)
    result.checks = kept


def _reference_date(context: AnalysisContext, today: date) -> tuple[date, str]:
    parsed = parse_date(context.application_date)
    if parsed:
        return parsed, "applicationDate"
    return today, "today"


def _first_field(fields: dict, *names: str) -> str:
    for name in names:
        value = fields.get(name)
        if value:
            return str(value)
    return ""


def _months_before(ref: date, months: int) -> date:
    year, month = divmod(ref.month - 1 - months, 12)
    year += ref.year
    month += 1
    # clamp 31st / 29 Feb to the last valid day
    for day in (ref.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)


def payment_recency(
    result: VerificationResult,
    context: AnalysisContext,
    rules: RuleSet,
    today: date,
) -> None:
    """Payment date must not be in the future nor older than 60 days."""
    raw = _first_field(result.fields_extracted, "payment_date", "paymentDate")
    ref, ref_label = _reference_date(context, today)

    check = Check(
        key="payment_date_recent",
        kind=CheckKind.PAYMENT_RECENCY,
        title="Payment is recent",
        required=False,
    )
    payment = parse_date(raw)
    if payment is None:
        check.passed = False
        check.details = (
            f"Could not parse payment date {raw!r} "
            "(expected DD.MM.YYYY or YYYY-MM-DD)"
        )
    else:
        diff = days_between(ref, payment)
        check.passed = 0 <= diff <= PAYMENT_RECENCY_DAYS
        check.details = (
            f"payment_date={raw} => {payment.isoformat()}, "
            f"ref({ref_label})={ref.isoformat()}, diffDays={diff}, "
            f"threshold={PAYMENT_RECENCY_DAYS}"
        )

    _replace_checks(result, check)


def document_age(
    result: VerificationResult,
    context: AnalysisContext,
    rules: RuleSet,
    today: date,
) -> None:
    """Document date must not be in the future nor older than 12 months."""
    raw = _first_field(result.fields_extracted, "doc_date", "docDate")
    ref, ref_label = _reference_date(context, today)

    check = Check(
        key="doc_date_recent",
        kind=CheckKind.DOCUMENT_AGE,
        title="Document is not older than 12 months",
        required=True,
    )
    issued = parse_date(raw)
    if issued is None:
        check.passed = False
        check.details = (
            f"Could not parse document date {raw!r} "
            "(expected DD.MM.YYYY or YYYY-MM-DD)"
        )
    else:
        earliest = _months_before(ref, DOCUMENT_AGE_MONTHS)
        check.passed = earliest <= issued <= ref
        check.details = (
            f"doc_date={raw} => {issued.isoformat()}, "
            f"ref({ref_label})={ref.isoformat()}, earliest={earliest.isoformat()}"
        )

    _replace_checks(result, check)


def fee_amount(
    result: VerificationResult,
    context: AnalysisContext,
    rules: RuleSet,
    today: date,
) -> None:
    """Paid amount must match the fee for the resolved purpose."""
    fields = result.fields_extracted
    fees = rules.fees

    amount = parse_amount(fields.get("amount_value"))
    if amount is None:
        amount = parse_amount(fields.get("amount")) or parse_amount(fields.get("amount_raw"))
    fields["amount_value"] = amount

    purpose = resolve_purpose(
        fees,
        path=context.path,
        detected_purpose=str(fields.get("detected_purpose") or ""),
        title=str(fields.get("title") or ""),
        recipient=str(fields.get("recipient") or ""),
    )
    expected = fees.amount_for(purpose)
    fields["detected_purpose"] = purpose
    fields["expected_amount"] = expected

    check = Check(
        key="amount_correct",
        kind=CheckKind.FEE_AMOUNT,
        title="Amount matches the fee",
        required=True,
    )
    if amount is None or expected is None:
        check.passed = False
        check.details = (
            f"Not enough data to check the amount: amount={amount}, "
            f"expected={expected}, purpose={purpose}"
        )
    else:
        delta = round(abs(amount - expected), 2)
        fields["amount_delta"] = delta
        check.passed = delta <= fees.tolerance_pln
        check.details = (
            f"amount={amount} PLN, expected={expected} PLN (purpose={purpose}), "
            f"tolerance=±{fees.tolerance_pln}, delta={delta}"
        )

    _replace_checks(result, check)


def verdict_consistency(
    result: VerificationResult,
    context: AnalysisContext,
    rules: RuleSet,
    today: date,
) -> None:
    """Derive the verdict from the checks instead of trusting the model."""
    failed_required = [c.label for c in result.checks if c.required and c.passed is False]
    failed_optional = [c.label for c in result.checks if not c.required and c.passed is False]

    if failed_required:
        status = VerdictStatus.FAIL
        summary = f"Required checks failed: {', '.join(failed_required)}."
    elif failed_optional:
        status = VerdictStatus.UNCERTAIN
        summary = f"Optional checks need attention: {', '.join(failed_optional)}."
    else:
        status = VerdictStatus.PASS
        summary = "All required checks passed."

    result.verdict = Verdict(status=status, summary=summary)


VALIDATORS: dict[str, Validator] = {
    "payment_recency": payment_recency,
    "document_age": document_age,
    "fee_amount": fee_amount,
    "verdict_consistency": verdict_consistency,
}


class PostValidator:
    """Runs the validators a document type declares, in declared order."""

    def __init__(self, rules: RuleSet, today: Optional[date] = None):
        self.rules = rules
        self.today = today

    def run(
        self,
        result: VerificationResult,
        doc_type: str,
        context: Optional[AnalysisContext] = None,
    ) -> VerificationResult:
        context = context or AnalysisContext()
        today = self.today or date.today()

        for name in self.rules.rules_for(doc_type).validators:
            validator = VALIDATORS.get(name)
            if validator is None:
                logger.warning("Unknown validator %r for doc type %s", name, doc_type)
                continue
            validator(result, context, self.rules, today)

        return result
