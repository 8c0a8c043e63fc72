"""Monetary amount parsing for Polish payment confirmations."""

import re
from typing import Optional

_PARENS = re.compile(r"^\((.*)\)$")
_DASHES = re.compile(r"[–—−]")
_CURRENCY = re.compile(r"pln|zł|zl", re.IGNORECASE)
_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?")


def _normalize_separators(text: str) -> str:
    """Resolve thousands separators and a decimal comma into a plain float string."""
    if "," in text and "." in text:
        # the later separator is the decimal one
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if "," in text:
        head, _, tail = text.rpartition(",")
        if len(tail) == 3 and head.lstrip("-").isdigit() and "," not in head:
            # 1,000 with no decimal part
            return head + tail
        return text.replace(",", ".") if text.count(",") == 1 else text.replace(",", "")
    return text


def parse_amount(value) -> Optional[float]:
    """Parse an amount like ``"440,00 zł"``, ``"1 234.50 PLN"`` or ``"(150.00)"``.

    Parenthesised or negative amounts are returned as their magnitude, since
    a debit of 440 is still a payment of 440. Returns None when no number
    is found.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return abs(float(value))

    text = str(value).strip()
    text = _PARENS.sub(r"\1", text)
    text = _DASHES.sub("-", text)
    text = re.sub(r"\s+", "", text)
    text = _CURRENCY.sub("", text)
    text = _normalize_separators(text)

    match = _NUMBER.match(text)
    if not match:
        return None
    return abs(float(match.group(0)))
