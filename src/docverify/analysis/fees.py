"""Fee purpose resolution against the fee table."""

import unicodedata
from typing import Optional

from docverify.models import FeeTable


def strip_diacritics(text: str) -> str:
    """Lowercase-friendly ASCII folding: ``opłata`` -> ``oplata``."""
    # ł has no decomposition
    text = text.replace("ł", "l").replace("Ł", "L")
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def detect_purpose_by_keywords(title: str, recipient: str, fees: FeeTable) -> Optional[str]:
    """First purpose whose keyword appears in the transfer title or recipient."""
    haystack = strip_diacritics(f"{title} {recipient}".lower())
    for purpose, keywords in fees.purpose_keywords.items():
        for keyword in keywords:
            if strip_diacritics(keyword.lower()) in haystack:
                return purpose
    return None


def resolve_purpose(
    fees: FeeTable,
    path: str = "",
    detected_purpose: str = "",
    title: str = "",
    recipient: str = "",
) -> str:
    """Resolve the payment purpose.

    Priority: path override, model-detected purpose, keyword match,
    default purpose.
    """
    overrides = fees.path_overrides
    if path:
        from_path = overrides.get(path) or overrides.get(path.lower())
        if from_path:
            return from_path
    if detected_purpose:
        return detected_purpose
    return detect_purpose_by_keywords(title, recipient, fees) or fees.default_purpose
