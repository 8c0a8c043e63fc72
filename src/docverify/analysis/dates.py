"""Lenient calendar-date parsing for extracted document fields."""

import re
from datetime import date
from typing import Optional

_YEAR_FIRST = re.compile(r"^(\d{4})[.\-/](\d{2})[.\-/](\d{2})$")
_DAY_FIRST = re.compile(r"^(\d{1,2})[.\-/](\d{1,2})[.\-/](\d{4})$")


def parse_date(value) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` or ``DD.MM.YYYY`` (``.``, ``-`` or ``/`` separated).

    Returns None for anything else, including impossible calendar dates.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()

    match = _YEAR_FIRST.match(text)
    if match:
        year, month, day = match.groups()
    else:
        match = _DAY_FIRST.match(text)
        if not match:
            return None
        day, month, year = match.groups()

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def days_between(later: date, earlier: date) -> int:
    """Whole days from ``earlier`` to ``later``; negative if ``earlier`` is after."""
    return (later - earlier).days
