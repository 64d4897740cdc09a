"""Aggregate statistics over normalized records.

All durations are in months. Percentiles use the nearest-rank method on the
ascending tenure list: the value at ``ceil(p / 100 * n) - 1``, clamped to
the list bounds, with no interpolation between neighbours.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from tenurescope.models import (
    HISTOGRAM_LABELS,
    Confidence,
    DataQuality,
    NormalizedRecord,
    Statistics,
)

# Upper bounds (exclusive) of each histogram bucket, in months. The last
# bucket is unbounded.
HISTOGRAM_BOUNDS: tuple[float, ...] = (6, 12, 24, 36, 60, 120, math.inf)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile of an ascending sequence (0 when empty)."""
    n = len(sorted_values)
    if n == 0:
        return 0
    index = math.ceil(p / 100 * n) - 1
    return sorted_values[max(0, min(index, n - 1))]


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean to one decimal, exact halves rounded up."""
    if not values:
        return 0
    average = Decimal(sum(values) / len(values))
    return float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def histogram(tenures: Sequence[int]) -> dict[str, int]:
    """Count tenures into the seven fixed buckets; every bucket is present."""
    bins = dict.fromkeys(HISTOGRAM_LABELS, 0)
    for months in tenures:
        for label, upper in zip(HISTOGRAM_LABELS, HISTOGRAM_BOUNDS):
            if months < upper:
                bins[label] += 1
                break
    return bins


def assess_quality(records: Sequence[NormalizedRecord]) -> DataQuality:
    return DataQuality(
        missing_start_date=sum(1 for r in records if not r.start_date_text),
        missing_end_date=sum(
            1 for r in records if r.is_past and not r.end_date_text
        ),
        ambiguous_dates=sum(
            1 for r in records if r.confidence == Confidence.LOW
        ),
    )


class StatisticsEngine:
    """Computes Statistics from normalized records.

    The result depends only on the multiset of records, not their order.
    """

    def calculate(self, records: Sequence[NormalizedRecord]) -> Statistics:
        if not records:
            return Statistics()

        tenures = sorted(r.tenure_months for r in records)
        past_count = sum(1 for r in records if r.is_past)

        return Statistics(
            count=len(records),
            current_count=len(records) - past_count,
            past_count=past_count,
            mean=mean(tenures),
            median=percentile(tenures, 50),
            p25=percentile(tenures, 25),
            p75=percentile(tenures, 75),
            p90=percentile(tenures, 90),
            min=tenures[0],
            max=tenures[-1],
            histogram=histogram(tenures),
            data_quality=assess_quality(records),
        )
