"""Tests for tenure computation and normalization."""

from datetime import date

import pytest
from freezegun import freeze_time

from tenurescope.models import Confidence, RawRecord
from tenurescope.tenure import TenureCalculator, months_between


def raw(**overrides) -> RawRecord:
    fields = {
        "name": "Jane Doe",
        "title": "Engineer",
        "start_date_text": "Jan 2020",
        "profile_ref": "https://www.linkedin.com/in/jane-doe",
    }
    fields.update(overrides)
    return RawRecord(**fields)


def test_months_between():
    assert months_between(date(2020, 1, 1), date(2022, 12, 1)) == 35
    assert months_between(date(2020, 5, 1), date(2020, 5, 1)) == 0
    assert months_between(date(2021, 1, 1), date(2020, 1, 1)) == 0


class TestCalculateTenure:
    def test_closed_range(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))
        record = raw(start_date_text="Jan 2020", end_date_text="Dec 2022")

        assert calculator.calculate_tenure(record) == 35

    def test_ongoing_uses_evaluation_date(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))

        assert calculator.calculate_tenure(raw()) == 48

    @freeze_time("2024-06-15")
    def test_defaults_to_current_date(self):
        assert TenureCalculator().calculate_tenure(raw()) == 53

    def test_year_only_start(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))

        assert calculator.calculate_tenure(raw(start_date_text="2019")) == 54

    def test_unparseable_dates_give_zero(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))

        assert calculator.calculate_tenure(raw(start_date_text="soon")) == 0
        assert calculator.calculate_tenure(raw(end_date_text="later")) == 0


class TestProcessRecord:
    def test_normalized_fields(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))
        record = raw(
            name=" <Jane> ",
            start_date_text="Jan 2020",
            end_date_text="Dec 2022",
            is_past=True,
            location=None,
        )

        normalized = calculator.process_record(record)

        assert normalized is not None
        assert normalized.name == "Jane"
        assert normalized.location == ""
        assert normalized.tenure_months == 35
        assert normalized.tenure_years == pytest.approx(2.92)
        assert normalized.confidence == Confidence.HIGH
        assert normalized.is_past is True

    def test_zero_tenure_is_dropped(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))

        assert calculator.process_record(raw(start_date_text="Jan 2024")) is None

    def test_invalid_record_is_dropped(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))

        assert calculator.process_record(raw(title="")) is None

    def test_process_records_keeps_order(self):
        calculator = TenureCalculator(today=date(2024, 1, 15))
        records = [
            raw(profile_ref="a", start_date_text="Jan 2022"),
            raw(profile_ref="b", start_date_text="nonsense"),
            raw(profile_ref="c", start_date_text="Jan 2018"),
        ]

        processed = calculator.process_records(records)

        assert [r.profile_ref for r in processed] == ["a", "c"]
        assert all(r.tenure_months > 0 for r in processed)
