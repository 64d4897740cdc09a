"""Tests for exception messages and context."""

from tenurescope.common.exceptions import (
    DataFormatAssumptionException,
    HTMLStructuralAssumptionException,
    NoUsableDataException,
    ScraperAssumptionException,
)


def test_structural_exception_message():
    exc = HTMLStructuralAssumptionException(
        selector="li.card",
        selector_type="css",
        description="member cards",
        expected_min=1,
        expected_max=None,
        actual_count=0,
        request_url="https://example.com/",
    )

    assert "Expected at least 1 elements for 'member cards'" in str(exc)
    assert "URL: https://example.com/" in str(exc)
    assert exc.context["expected_max"] == "unlimited"
    assert isinstance(exc, ScraperAssumptionException)


def test_structural_exception_exact_count():
    exc = HTMLStructuralAssumptionException(
        selector="//h1",
        selector_type="xpath",
        description="header",
        expected_min=1,
        expected_max=1,
        actual_count=3,
        request_url="",
    )

    assert "Expected exactly 1 elements" in exc.message
    assert "found 3" in exc.message


def test_data_format_exception_summarizes_errors():
    exc = DataFormatAssumptionException(
        errors=[
            {"loc": ("tenure_months",), "msg": "too small"},
            {"loc": (), "msg": "bad document"},
        ],
        failed_doc={"company_id": "acme"},
        model_name="NormalizedRecord",
    )

    assert "tenure_months: too small" in exc.message
    assert "<root>: bad document" in exc.message
    assert exc.context["error_count"] == 2


def test_no_usable_data_messages():
    nothing = NoUsableDataException("https://example.com/", cards_seen=0)
    unusable = NoUsableDataException(
        "https://example.com/", cards_seen=4, raw_records=2
    )

    assert nothing.message.startswith("No member data found")
    assert unusable.message == "No valid member data could be processed."
    assert unusable.context == {"cards_seen": 4, "raw_records": 2}
