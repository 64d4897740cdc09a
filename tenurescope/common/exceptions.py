"""Exception types for extraction and analysis errors.

Almost every failure in the pipeline is handled locally and turned into
"fewer records". The classes here exist for the few places where an error
has to travel: checked queries that report a structural mismatch to their
caller, stored data that no longer validates, and the single domain-level
failure the analyzer surfaces when nothing usable was collected.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Something about the member directory was not as expected.

    The directory is third-party markup that changes without notice, so
    every subclass carries the view URL and a context mapping with enough
    detail to see what moved.

    Attributes:
        message: One-line summary.
        request_url: URL of the view involved, if any.
        context: Extra diagnostic fields, rendered one per line.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = [self.message, f"URL: {self.request_url}"]
        if self.context:
            lines.append("Context:")
            lines.extend(f"  {k}: {v}" for k, v in self.context.items())
        return "\n".join(lines)


def _expected_range(expected_min: int, expected_max: int | None) -> str:
    if expected_max is None:
        return f"at least {expected_min}"
    if expected_min == expected_max:
        return f"exactly {expected_min}"
    return f"between {expected_min} and {expected_max}"


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """A checked query matched an unexpected number of elements.

    Also raised for selectors that do not parse, and by views when a click
    target is missing. The selector resolver, the crawler and the
    extractors catch it and treat it as a selector miss; it never escapes
    the pipeline.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        expected = _expected_range(expected_min, expected_max)
        super().__init__(
            f"HTML structure mismatch: Expected {expected} elements for "
            f"'{description}', but found {actual_count}",
            request_url,
            {
                "selector": selector,
                "selector_type": selector_type,
                "expected_min": expected_min,
                "expected_max": "unlimited"
                if expected_max is None
                else expected_max,
                "actual_count": actual_count,
            },
        )


class DataFormatAssumptionException(ScraperAssumptionException):
    """Stored analysis data no longer matches its model.

    Raised by the store when a saved analysis or cache entry fails pydantic
    validation on the way back in.

    Attributes:
        errors: The pydantic error dicts.
        failed_doc: Identifying fields of the row that failed.
        model_name: Model the data was validated against.
    """

    def __init__(
        self,
        errors: list[dict[str, Any]],
        failed_doc: dict[str, Any],
        model_name: str,
        request_url: str = "",
    ) -> None:
        self.errors = errors
        self.failed_doc = failed_doc
        self.model_name = model_name

        summary = ", ".join(
            f"{err['loc'][0] if err['loc'] else '<root>'}: {err['msg']}"
            for err in errors
        )
        super().__init__(
            f"Data validation failed for model '{model_name}': {summary}",
            request_url,
            {
                "model": model_name,
                "document": failed_doc,
                "error_count": len(errors),
            },
        )


class NoUsableDataException(ScraperAssumptionException):
    """Raised when a full pipeline run produced zero valid records.

    This is the only error the analyzer surfaces to its caller. Every
    other failure (selector misses, skipped cards, unparseable dates,
    exhausted crawls, readiness timeouts) only reduces the record count.

    Attributes:
        cards_seen: Number of member cards the crawl collected.
        raw_records: Number of cards that yielded a raw record.
    """

    def __init__(
        self,
        request_url: str,
        cards_seen: int = 0,
        raw_records: int = 0,
    ) -> None:
        self.cards_seen = cards_seen
        self.raw_records = raw_records

        if raw_records == 0:
            message = (
                "No member data found. Make sure the view is a company "
                "people page."
            )
        else:
            message = "No valid member data could be processed."

        super().__init__(
            message,
            request_url,
            {"cards_seen": cards_seen, "raw_records": raw_records},
        )
