"""Rough OCR quality grading from letter density."""

import re

_LETTERS = re.compile(r"[A-Za-zА-Яа-яЁёĄąĆćĘęŁłŃńÓóŚśŹźŻż]")


def estimate_ocr_quality(text: str) -> str:
    """Grade text as ``good``, ``medium`` or ``poor``."""
    if not text:
        return "poor"
    length = len(text)
    ratio = len(_LETTERS.findall(text)) / max(1, length)
    if ratio > 0.7 and length > 500:
        return "good"
    if ratio > 0.4 and length > 200:
        return "medium"
    return "poor"
