"""Tests for the analysis request and reply parsing."""

import json

from conftest import FakeReasoningService

from docverify.analysis.client import (
    DocumentAnalysisClient,
    build_result,
    canonical_doc_type,
    parse_response,
)
from docverify.models import (
    AnalysisContext,
    CheckKind,
    ExtractedText,
    ParsedOk,
    ParseFailed,
    VerdictStatus,
)

REPLY = {
    "verdict": {"status": "pass", "summary": "Looks fine"},
    "checks": [
        {"key": "recipient_correct", "title": "Recipient", "required": True, "passed": True},
        {"key": "payment_recent", "title": "Fresh", "passed": True, "fixTip": "none"},
        {"key": "kwota_poprawna", "title": "Kwota", "passed": False},
    ],
    "errors": [{"code": "E1", "title": "Blurry", "severity": "catastrophic"}],
    "recommendations": ["Rescan page 2"],
    "fieldsExtracted": {"amount": "440,00 zł", "payment_date": "15.01.2025"},
}


class TestParseResponse:
    """Tests for lenient JSON extraction."""

    def test_json_wrapped_in_prose(self):
        outcome = parse_response('Here you go:\n```json\n{"verdict": "fail"}\n```')
        assert outcome == ParsedOk(fields={"verdict": "fail"})

    def test_no_json(self):
        outcome = parse_response("I could not read the document.")
        assert isinstance(outcome, ParseFailed)
        assert outcome.reason == "no json"

    def test_invalid_json(self):
        outcome = parse_response("{not: json}")
        assert isinstance(outcome, ParseFailed)
        assert outcome.reason == "parse error"
        assert outcome.raw_text == "{not: json}"

    def test_trailing_prose_with_braces(self):
        """Only the first balanced object is decoded."""
        outcome = parse_response(
            '{"verdict": {"status": "fail", "summary": "x"}}\nNote: fields use {placeholders}.'
        )
        assert outcome == ParsedOk(fields={"verdict": {"status": "fail", "summary": "x"}})

    def test_nested_braces_in_strings(self):
        outcome = parse_response('Result: {"message": "use {name}", "checks": []} done')
        assert outcome == ParsedOk(fields={"message": "use {name}", "checks": []})


class TestBuildResult:
    """Tests for overlaying replies on defaults."""

    def test_parse_failure_is_uncertain_with_raw(self):
        result = build_result(ParseFailed(raw_text="garbage"), "passport")

        assert result.verdict.status == VerdictStatus.UNCERTAIN
        assert result.raw == "garbage"
        assert result.checks == []
        assert result.fields_extracted == {}

    def test_checks_classified_by_key(self):
        result = build_result(ParsedOk(fields=REPLY), "oplata_skarbowa")

        assert [c.kind for c in result.checks] == [
            CheckKind.MODEL,
            CheckKind.PAYMENT_RECENCY,
            CheckKind.FEE_AMOUNT,
        ]

    def test_defaults_and_normalization(self):
        result = build_result(ParsedOk(fields=REPLY), "oplata_skarbowa")

        assert result.verdict.status == VerdictStatus.PASS
        assert result.errors[0].severity == "minor"
        assert result.recommendations == ["Rescan page 2"]
        assert result.doc_type == "oplata_skarbowa"

    def test_string_verdict_with_message(self):
        result = build_result(
            ParsedOk(fields={"verdict": "FAIL", "message": "Address missing"}), "meldunek"
        )
        assert result.verdict.status == VerdictStatus.FAIL
        assert result.verdict.summary == "Address missing"

    def test_unknown_status_is_uncertain(self):
        result = build_result(ParsedOk(fields={"verdict": {"status": "maybe"}}), "x")
        assert result.verdict.status == VerdictStatus.UNCERTAIN

    def test_extra_check_fields_kept_in_response(self):
        response = build_result(ParsedOk(fields=REPLY), "oplata_skarbowa").to_response()

        assert response["checks"][1]["fixTip"] == "none"
        assert response["fieldsExtracted"]["amount"] == "440,00 zł"
        assert response["docType"] == "oplata_skarbowa"

    def test_non_string_key_is_stringified(self):
        result = build_result(
            ParsedOk(fields={"checks": [{"key": 7, "title": "x", "required": True, "passed": False}]}),
            "passport",
        )

        assert result.checks[0].key == "7"
        assert result.checks[0].kind == CheckKind.MODEL

    def test_null_fields_keep_the_check(self):
        """A failed required check with a null title is not dropped."""
        outcome = parse_response(
            '{"checks": [{"key": "recipient_correct", "title": null, '
            '"required": true, "passed": false}]}'
        )
        result = build_result(outcome, "oplata_skarbowa")

        assert len(result.checks) == 1
        check = result.checks[0]
        assert check.title == ""
        assert check.required is True
        assert check.passed is False

    def test_loose_flag_values(self):
        result = build_result(
            ParsedOk(
                fields={
                    "checks": [
                        {"key": "a", "required": None, "passed": "n/a"},
                        {"key": "b", "required": "false", "passed": "yes"},
                        {"key": "c", "required": 1, "passed": 0, "details": 12},
                    ]
                }
            ),
            "other",
        )

        assert [(c.required, c.passed) for c in result.checks] == [
            (False, None),
            (False, True),
            (True, False),
        ]
        assert result.checks[2].details == "12"


class TestDocumentAnalysisClient:
    """Tests for request construction."""

    def test_canonical_doc_type(self):
        assert canonical_doc_type(" Opłata_Skarbowa ") == "oplata_skarbowa"

    def test_request_parts(self, rules):
        service = FakeReasoningService(analyze_reply=json.dumps(REPLY))
        client = DocumentAnalysisClient(service, rules, text_limit=50)
        extracted = ExtractedText(text="x" * 80, composite_image=b"\xff\xd8jpeg")
        context = AnalysisContext(citizenship="UA", path="work", application_date="2025-02-01")

        result = client.analyze(extracted, "opłata_skarbowa", context)

        call = service.analyze_calls[0]
        assert call["system"] == rules.base_prompt
        assert call["images"] == [b"\xff\xd8jpeg"]
        header = call["parts"][0]
        assert "docType: oplata_skarbowa" in header
        assert "citizenship: UA" in header
        assert "applicationDate: 2025-02-01" in header
        assert call["parts"][1].startswith("SCHEMA:")
        assert call["parts"][2].startswith("CHECKLIST FOR TYPE:")
        assert call["parts"][3].startswith("FEES_TABLE:")
        assert call["parts"][4] == "OCR_TEXT (raw):\n" + "x" * 50
        assert result.doc_type == "oplata_skarbowa"

    def test_defaults_in_header(self, rules):
        service = FakeReasoningService(analyze_reply="{}")
        DocumentAnalysisClient(service, rules).analyze(None, "passport")

        header = service.analyze_calls[0]["parts"][0]
        assert "citizenship: unknown" in header
        assert "path: general" in header
        assert not any(p.startswith("OCR_TEXT") for p in service.analyze_calls[0]["parts"])
        assert service.analyze_calls[0]["images"] == []

    def test_unparseable_reply(self, rules):
        service = FakeReasoningService(analyze_reply="Sorry, no.")
        result = DocumentAnalysisClient(service, rules).analyze(None, "passport")

        assert result.verdict.status == VerdictStatus.UNCERTAIN
        assert result.raw == "Sorry, no."
