"""Tenure computation and record normalization.

Tenure is the number of whole calendar months between the start date and
the end date, or the month of evaluation when the member is still there. A
computed tenure of zero means a date could not be parsed (or made no sense)
and the record is dropped rather than counted as a zero-length stint.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from tenurescope.date_parser import parse_date
from tenurescope.models import NormalizedRecord, RawRecord
from tenurescope.validators import (
    calculate_confidence,
    is_valid_record,
    sanitize_string,
)

logger = logging.getLogger(__name__)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, never negative."""
    return max(0, (end.year - start.year) * 12 + (end.month - start.month))


class TenureCalculator:
    """Turns raw records into normalized records with tenure.

    Args:
        today: Evaluation date used as the end of ongoing tenures. Defaults
            to the current date at the time of each calculation.
    """

    def __init__(self, today: date | None = None) -> None:
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def calculate_tenure(self, record: RawRecord) -> int:
        """Tenure in months, or 0 if either date cannot be parsed."""
        start = parse_date(record.start_date_text)
        if start is None:
            return 0

        if record.end_date_text:
            end = parse_date(record.end_date_text)
            if end is None:
                return 0
        else:
            end = self.today

        return months_between(start, end)

    def process_record(self, record: RawRecord) -> NormalizedRecord | None:
        """Validate and normalize one record.

        Returns:
            The normalized record, or None when the record is invalid or its
            tenure comes out as zero.
        """
        if not is_valid_record(record):
            logger.debug(f"Dropping invalid record {record.profile_ref!r}")
            return None

        tenure_months = self.calculate_tenure(record)
        if tenure_months == 0:
            logger.debug(
                f"Dropping {record.profile_ref}: no usable tenure from "
                f"{record.start_date_text!r} to {record.end_date_text!r}"
            )
            return None

        return NormalizedRecord(
            name=sanitize_string(record.name),
            title=sanitize_string(record.title),
            start_date_text=record.start_date_text,
            end_date_text=record.end_date_text,
            profile_ref=record.profile_ref,
            location=sanitize_string(record.location),
            is_past=record.is_past,
            tenure_months=tenure_months,
            tenure_years=round(tenure_months / 12, 2),
            confidence=calculate_confidence(record),
        )

    def process_records(
        self, records: Iterable[RawRecord]
    ) -> list[NormalizedRecord]:
        """Normalize records, keeping input order and dropping failures."""
        processed: list[NormalizedRecord] = []
        for record in records:
            normalized = self.process_record(record)
            if normalized is not None:
                processed.append(normalized)
        return processed
