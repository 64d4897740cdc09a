"""Count-validated XPath/CSS queries over lxml elements.

CheckedHtmlElement wraps an lxml HtmlElement and checks how many elements
a selector produced. A mismatch raises HTMLStructuralAssumptionException so
callers can tell "the markup moved" apart from "the value is empty".
"""

from __future__ import annotations

from typing import Any

from lxml.html import HtmlElement

from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    Attributes not defined here (``text_content``, ``get``, ``tag`` ...)
    are delegated to the wrapped element.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        self._element = element
        self._request_url = request_url

    def _mismatch(
        self,
        selector: str,
        kind: str,
        description: str,
        min_count: int,
        max_count: int | None,
        actual_count: int,
    ) -> HTMLStructuralAssumptionException:
        return HTMLStructuralAssumptionException(
            selector=selector,
            selector_type=kind,
            description=description,
            expected_min=min_count,
            expected_max=max_count,
            actual_count=actual_count,
            request_url=self._request_url,
        )

    def _checked(
        self,
        results: list[Any],
        selector: str,
        kind: str,
        description: str,
        min_count: int,
        max_count: int | None,
    ) -> list[CheckedHtmlElement]:
        elements = [r for r in results if isinstance(r, HtmlElement)]
        count = len(elements)
        if count < min_count or (max_count is not None and count > max_count):
            raise self._mismatch(
                selector, kind, description, min_count, max_count, count
            )
        return [CheckedHtmlElement(e, self._request_url) for e in elements]

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Run an XPath expression and validate the element count.

        Only element results are kept; text nodes, attribute values and
        scalar results (``count()``, ``string()``) are dropped.

        Raises:
            HTMLStructuralAssumptionException: If the count is out of range
                or the expression is invalid.

        Example::

            tree = CheckedHtmlElement(lxml.html.fromstring(html))
            cards = tree.checked_xpath("//li[@class='card']", "member cards")
        """
        try:
            results = self._element.xpath(xpath)
        except Exception as e:
            raise self._mismatch(
                xpath, "xpath", description, min_count, max_count, 0
            ) from e

        if not isinstance(results, list):
            results = []
        return self._checked(
            results, xpath, "xpath", description, min_count, max_count
        )

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Run a CSS selector and validate the element count.

        Raises:
            HTMLStructuralAssumptionException: If the count is out of range
                or the selector cannot be parsed.
        """
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            raise self._mismatch(
                selector, "css", description, min_count, max_count, 0
            ) from e

        return self._checked(
            results, selector, "css", description, min_count, max_count
        )

    def __getattr__(self, name: str):
        return getattr(self._element, name)
