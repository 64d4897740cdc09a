"""Selector utility functions shared by the query layer and the views.

Selector strings in a SelectorSet may be either XPath or CSS. These helpers
decide which one a string is, run it against a PageElement, and translate it
for Playwright when a live page has to act on it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tenurescope.common.page_element import PageElement


def selector_type(selector: str) -> str:
    """Classify a selector string as "xpath" or "css".

    Examples:
        >>> selector_type("//button[@disabled]")
        'xpath'
        >>> selector_type(".//a/@href")
        'xpath'
        >>> selector_type("(//button)[1]")
        'xpath'
        >>> selector_type("button.pagination__next")
        'css'
    """
    stripped = selector.lstrip()
    if stripped.startswith(("/", "./", "(")):
        return "xpath"
    return "css"


def query_elements(
    element: PageElement,
    selector: str,
    description: str,
    min_count: int = 0,
    max_count: int | None = None,
) -> list[PageElement]:
    """Run an XPath or CSS selector against an element.

    Raises:
        HTMLStructuralAssumptionException: If count doesn't match
            expectations or the selector is invalid.
    """
    if selector_type(selector) == "xpath":
        return element.query_xpath(selector, description, min_count, max_count)
    return element.query_css(selector, description, min_count, max_count)


def to_playwright_selector(selector: str) -> str:
    """Prefix XPath selectors so Playwright's locator engine accepts them.

    Examples:
        >>> to_playwright_selector("//button[@aria-label='Next']")
        "xpath=//button[@aria-label='Next']"
        >>> to_playwright_selector("button.next")
        'button.next'
    """
    if selector_type(selector) == "xpath":
        return f"xpath={selector}"
    return selector
