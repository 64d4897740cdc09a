"""Tests for aggregate statistics."""

import random

import pytest

from tenurescope.models import HISTOGRAM_LABELS, Confidence, NormalizedRecord
from tenurescope.statistics import (
    StatisticsEngine,
    histogram,
    mean,
    percentile,
)


def record(
    months: int,
    is_past: bool = False,
    confidence: Confidence = Confidence.HIGH,
    end_date_text: str | None = None,
    slug: str = "member",
) -> NormalizedRecord:
    return NormalizedRecord(
        name="Member",
        title="Engineer",
        start_date_text="Jan 2020",
        end_date_text=end_date_text,
        profile_ref=f"https://www.linkedin.com/in/{slug}",
        is_past=is_past,
        tenure_months=months,
        tenure_years=round(months / 12, 2),
        confidence=confidence,
    )


class TestHelpers:
    def test_percentile_nearest_rank(self):
        values = [12, 24, 36, 48, 60]

        assert percentile(values, 25) == 24
        assert percentile(values, 50) == 36
        assert percentile(values, 75) == 48
        assert percentile(values, 90) == 60

    def test_percentile_edges(self):
        assert percentile([], 50) == 0
        assert percentile([7], 90) == 7
        assert percentile([1, 2, 3], 0) == 1

    def test_mean_rounds_to_one_decimal(self):
        assert mean([1, 2, 2]) == pytest.approx(1.7)
        assert mean([]) == 0

    def test_mean_rounds_exact_halves_up(self):
        assert mean([1, 24, 60, 60]) == 36.3
        assert mean([0, 0, 0, 1]) == 0.3

    def test_histogram_bucket_bounds(self):
        bins = histogram([0, 5, 6, 11, 12, 23, 24, 35, 36, 59, 60, 119, 120])

        assert bins == {
            "0-6m": 2,
            "6-12m": 2,
            "1-2y": 2,
            "2-3y": 2,
            "3-5y": 2,
            "5-10y": 2,
            "10y+": 1,
        }


class TestStatisticsEngine:
    def test_empty_input(self):
        stats = StatisticsEngine().calculate([])

        assert stats.count == 0
        assert stats.mean == 0
        assert stats.median == 0
        assert stats.min == 0
        assert stats.max == 0
        assert list(stats.histogram) == list(HISTOGRAM_LABELS)
        assert all(v == 0 for v in stats.histogram.values())

    def test_basic_summary(self):
        records = [record(m) for m in (12, 24, 36, 48, 60)]

        stats = StatisticsEngine().calculate(records)

        assert stats.count == 5
        assert stats.mean == 36
        assert stats.median == 36
        assert stats.p25 == 24
        assert stats.p75 == 48
        assert stats.p90 == 60
        assert stats.min == 12
        assert stats.max == 60
        assert stats.histogram["1-2y"] == 1
        assert stats.histogram["3-5y"] == 2

    def test_current_and_past_counts(self):
        records = [record(10), record(20, is_past=True), record(30)]

        stats = StatisticsEngine().calculate(records)

        assert stats.current_count == 2
        assert stats.past_count == 1
        assert stats.current_count + stats.past_count == stats.count

    def test_data_quality(self):
        records = [
            record(10, is_past=True),
            record(20, is_past=True, end_date_text="Dec 2022"),
            record(30, confidence=Confidence.LOW),
        ]

        quality = StatisticsEngine().calculate(records).data_quality

        assert quality.missing_start_date == 0
        assert quality.missing_end_date == 1
        assert quality.ambiguous_dates == 1

    def test_invariants_hold_for_arbitrary_input(self):
        rng = random.Random(7)
        records = [
            record(rng.randint(1, 400), is_past=rng.random() < 0.3)
            for _ in range(101)
        ]

        stats = StatisticsEngine().calculate(records)

        assert sum(stats.histogram.values()) == stats.count
        assert stats.min <= stats.p25 <= stats.median <= stats.p75
        assert stats.p75 <= stats.p90 <= stats.max
        assert stats.min <= stats.mean <= stats.max

    def test_order_independent(self):
        records = [record(m) for m in (5, 70, 13, 200, 40)]

        forward = StatisticsEngine().calculate(records)
        backward = StatisticsEngine().calculate(list(reversed(records)))

        assert forward == backward
