"""Structural validation and confidence scoring for raw records."""

from __future__ import annotations

import re

from tenurescope.models import Confidence, RawRecord

YEAR_ONLY_PATTERN = re.compile(r"^\d{4}$")

HIGH_CONFIDENCE_SCORE = 80
MEDIUM_CONFIDENCE_SCORE = 50


def _non_empty_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_valid_record(record: RawRecord) -> bool:
    """Whether a record has everything needed to compute a tenure.

    Title, start date text and profile reference must be non-empty text and
    ``is_past`` must be a boolean.
    """
    return (
        _non_empty_text(record.title)
        and _non_empty_text(record.start_date_text)
        and _non_empty_text(record.profile_ref)
        and isinstance(record.is_past, bool)
    )


def confidence_score(record: RawRecord) -> int:
    """Heuristic 0-100 score for how precise a record's dates are."""
    score = 100
    if YEAR_ONLY_PATTERN.match(record.start_date_text.strip()):
        score -= 20
    if record.is_past and not record.end_date_text:
        score -= 30
    if not record.title:
        score -= 10
    return score


def calculate_confidence(record: RawRecord) -> Confidence:
    """Map a record's confidence score to a label.

    Examples:
        A current member who started "Jan 2020" scores 100 (high). A past
        member known only by "2020" with no end date scores 50 (medium).
    """
    if not record.start_date_text:
        return Confidence.LOW

    score = confidence_score(record)
    if score >= HIGH_CONFIDENCE_SCORE:
        return Confidence.HIGH
    if score >= MEDIUM_CONFIDENCE_SCORE:
        return Confidence.MEDIUM
    return Confidence.LOW


def sanitize_string(value: str | None) -> str:
    """Trim text and strip angle brackets; None becomes an empty string."""
    if not value:
        return ""
    return value.strip().replace("<", "").replace(">", "")
