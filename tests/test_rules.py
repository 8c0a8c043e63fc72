"""Tests for rule set loading."""

import json

import pytest

from docverify.analysis.validators import VALIDATORS
from docverify.errors import RulesUnavailable
from docverify.models import DocTypeRules
from docverify.rules import DEFAULT_RULES_DIR, load_rules


def _write_rules(directory, fees=None):
    (directory / "prompt.base.txt").write_text("Be strict.\n", encoding="utf-8")
    (directory / "schema.verify.json").write_text('{"type": "object"}', encoding="utf-8")
    (directory / "doc_rules.json").write_text(
        json.dumps({"custom": {"title": "Custom", "validators": ["verdict_consistency"]}}),
        encoding="utf-8",
    )
    if fees is not None:
        (directory / "context").mkdir()
        (directory / "context" / "fees.json").write_text(fees, encoding="utf-8")


class TestDefaultRules:
    """Tests for the packaged rule set."""

    def test_loads(self, rules):
        assert rules.base_prompt
        assert rules.response_schema["type"] == "object"
        assert "oplata_skarbowa" in rules.doc_types
        assert rules.fees.amount_for("permanent_residence") == 640

    def test_declared_validators_exist(self, rules):
        for name, doc_rules in rules.doc_types.items():
            for validator in doc_rules.validators:
                assert validator in VALIDATORS, f"{name}: {validator}"

    @pytest.mark.parametrize("doc_type", ["meldunek", "lease_standard", "lease_okazjonalna", "owner", "other"])
    def test_address_types_check_document_age(self, rules, doc_type):
        assert "document_age" in rules.rules_for(doc_type).validators

    def test_unknown_doc_type_gets_empty_rules(self, rules):
        assert rules.rules_for("nonexistent") == DocTypeRules()

    def test_unknown_purpose_falls_back(self, rules):
        assert rules.fees.amount_for("no_such_purpose") == 440


class TestLoadRules:
    """Tests for loading from a directory."""

    def test_custom_directory(self, tmp_path):
        _write_rules(tmp_path)
        rules = load_rules(tmp_path)

        assert rules.base_prompt == "Be strict."
        assert list(rules.doc_types) == ["custom"]
        assert rules.fees.is_empty

    def test_settings_override(self, tmp_path, monkeypatch):
        from docverify.config import settings

        _write_rules(tmp_path)
        monkeypatch.setattr(settings, "rules_dir", str(tmp_path))
        assert list(load_rules().doc_types) == ["custom"]

    def test_broken_fees_ignored(self, tmp_path):
        _write_rules(tmp_path, fees="{broken")
        assert load_rules(tmp_path).fees.is_empty

    def test_missing_prompt(self, tmp_path):
        with pytest.raises(RulesUnavailable):
            load_rules(tmp_path)

    def test_broken_doc_rules(self, tmp_path):
        _write_rules(tmp_path)
        (tmp_path / "doc_rules.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(RulesUnavailable):
            load_rules(tmp_path)

    def test_default_dir_is_packaged(self):
        assert (DEFAULT_RULES_DIR / "doc_rules.json").is_file()
