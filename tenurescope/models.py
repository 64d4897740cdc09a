"""Pydantic models for member records and tenure statistics.

RawRecord is what an extractor reads off one member card. NormalizedRecord
adds the computed tenure and a confidence label. Statistics is the
aggregate handed to the caller; AnalysisResult bundles everything the
storage collaborator persists for one company.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

HISTOGRAM_LABELS: tuple[str, ...] = (
    "0-6m",
    "6-12m",
    "1-2y",
    "2-3y",
    "3-5y",
    "5-10y",
    "10y+",
)


class Confidence(str, Enum):
    """How much date precision was available for a record."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RawRecord(BaseModel):
    """One member entry as read from a card (or profile view).

    title, start_date_text and profile_ref are required for a record to be
    produced at all; the extractors never build a RawRecord without them.
    Defaults exist so records can be loaded back from partial JSON and then
    rejected by the validator rather than by pydantic.
    """

    name: str | None = None
    title: str = ""
    start_date_text: str = ""
    end_date_text: str | None = None
    profile_ref: str = ""
    location: str | None = None
    is_past: bool = False


class NormalizedRecord(RawRecord):
    """A validated record with its computed tenure."""

    tenure_months: int = Field(ge=0)
    tenure_years: float
    confidence: Confidence


class DataQuality(BaseModel):
    missing_start_date: int = 0
    missing_end_date: int = 0
    ambiguous_dates: int = 0


def _empty_histogram() -> dict[str, int]:
    return dict.fromkeys(HISTOGRAM_LABELS, 0)


class Statistics(BaseModel):
    """Aggregate tenure statistics, all durations in months.

    Invariants: sum(histogram.values()) == count and
    current_count + past_count == count.
    """

    count: int = 0
    current_count: int = 0
    past_count: int = 0
    mean: float = 0
    median: float = 0
    p25: float = 0
    p75: float = 0
    p90: float = 0
    min: float = 0
    max: float = 0
    histogram: dict[str, int] = Field(default_factory=_empty_histogram)
    data_quality: DataQuality = Field(default_factory=DataQuality)


class AnalysisResult(BaseModel):
    """Everything produced for one company in one analysis run.

    Attributes:
        company_id: Identifier taken from the company page URL.
        company_name: Display name read from the page header.
        timestamp: Epoch milliseconds when the analysis finished.
        records: Normalized records in crawl order.
        stats: Aggregate statistics over ``records``.
    """

    company_id: str
    company_name: str
    timestamp: int
    records: list[NormalizedRecord]
    stats: Statistics
