"""Rule set models loaded from static configuration."""

from typing import Any, Optional

from pydantic import Field

from .base import BaseIRModel

DEFAULT_PURPOSE = "temporary_residence_general"


class DocTypeRules(BaseIRModel):
    """Checklist and capabilities for one document type."""

    title: str = ""
    checks: list[dict[str, Any]] = Field(default_factory=list)
    fields: list[str] = Field(default_factory=list)
    validators: list[str] = Field(
        default_factory=list,
        description="Deterministic validators to run, in order",
    )
    notes: str = ""

    def checklist(self) -> dict[str, Any]:
        """Checklist as shown to the reasoning service."""
        return {"title": self.title, "checks": self.checks, "fields": self.fields}


class FeeItem(BaseIRModel):
    amount_pln: float
    label: str = ""


class FeeTable(BaseIRModel):
    """Monetary fee table used by the amount check."""

    items: dict[str, FeeItem] = Field(default_factory=dict)
    purpose_keywords: dict[str, list[str]] = Field(default_factory=dict)
    path_overrides: dict[str, str] = Field(default_factory=dict)
    tolerance_pln: float = 1.0
    default_purpose: str = DEFAULT_PURPOSE

    @property
    def is_empty(self) -> bool:
        return not self.items

    def amount_for(self, purpose: Optional[str]) -> Optional[float]:
        """Expected amount for a purpose, falling back to the default purpose."""
        item = self.items.get(purpose or "") or self.items.get(self.default_purpose)
        return item.amount_pln if item else None


class RuleSet(BaseIRModel):
    """Read-only rules loaded once per request."""

    name: str = "default"
    base_prompt: str = ""
    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")
    doc_types: dict[str, DocTypeRules] = Field(default_factory=dict)
    fees: FeeTable = Field(default_factory=FeeTable)

    @property
    def response_schema(self) -> dict[str, Any]:
        return self.schema_

    def rules_for(self, doc_type: str) -> DocTypeRules:
        """Rules for a document type; unknown types get an empty checklist."""
        return self.doc_types.get(doc_type) or DocTypeRules()

    class Config:
        frozen = True
        populate_by_name = True
