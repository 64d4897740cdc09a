"""Heuristic parser for human-written start and end dates.

Member cards and profiles show dates as "Jan 2020", "September 2018" or just
"2019". Only calendar-month precision is ever needed, so a parsed value is a
``date`` on the first of its month. A bare year is read as July of that year
because only the year is known and mid-year is the least biased guess.
"""

from __future__ import annotations

import re
from datetime import date

MONTHS: dict[str, int] = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}

MONTH_YEAR_PATTERN = re.compile(r"(\w+)\s+(\d{4})")
YEAR_ONLY_PATTERN = re.compile(r"^(\d{4})$")

MID_YEAR_MONTH = 7


def parse_month(word: str) -> int | None:
    """Map a month word to its number (1-12).

    Exact names and abbreviations are tried first, then any table key that
    starts with the word's first three letters.

    Examples:
        >>> parse_month("Sept")
        9
        >>> parse_month("Janvier")
        1
        >>> parse_month("Q1") is None
        True
    """
    normalized = word.strip().lower()
    if not normalized:
        return None

    if normalized in MONTHS:
        return MONTHS[normalized]

    prefix = normalized[:3]
    for key, month in MONTHS.items():
        if key.startswith(prefix):
            return month

    return None


def parse_date(text: str | None) -> date | None:
    """Parse "<month> <year>" or "<year>" into the first day of a month.

    Never raises.

    Examples:
        >>> parse_date("Jan 2020")
        datetime.date(2020, 1, 1)
        >>> parse_date("2020")
        datetime.date(2020, 7, 1)
        >>> parse_date("not a date") is None
        True
    """
    if not text or not isinstance(text, str):
        return None

    trimmed = text.strip()

    month_year = MONTH_YEAR_PATTERN.search(trimmed)
    if month_year:
        month = parse_month(month_year.group(1))
        year = int(month_year.group(2))
        if month is not None and year >= 1:
            return date(year, month, 1)

    year_only = YEAR_ONLY_PATTERN.match(trimmed)
    if year_only:
        year = int(year_only.group(1))
        if year >= 1:
            return date(year, MID_YEAR_MONTH, 1)

    return None
