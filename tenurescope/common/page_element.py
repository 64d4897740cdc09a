"""PageElement protocol for reading data out of a rendered view.

The pipeline never touches a live browser object. Whatever supplies the
document (a saved HTML file, a Playwright page) serializes its current
render to HTML, which is parsed with lxml and handed over as a PageElement.
Member cards, advance controls and profile pages are all read through this
interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Link:
    """An <a> element found in a view.

    Attributes:
        url: href resolved against the view URL.
        text: Stripped visible text of the link.
    """

    url: str
    text: str


class PageElement(Protocol):
    """A node of a parsed document snapshot.

    Queries take a ``description`` used in error messages and an expected
    result count. A count outside ``[min_count, max_count]`` (or a selector
    that does not parse) raises HTMLStructuralAssumptionException; callers
    that only want "whatever is there" pass ``min_count=0``.
    """

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[PageElement]:
        """Elements matched by an XPath expression, in document order."""
        ...

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[PageElement]:
        """Elements matched by a CSS selector, in document order."""
        ...

    def text_content(self) -> str:
        """Text of the element and its descendants, whitespace-normalized."""
        ...

    def get_attribute(self, name: str) -> str | None:
        ...

    def find_links(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Links matched by an XPath or CSS selector.

        Matched elements without an href are left out of the result, but
        still count towards ``min_count``/``max_count``.
        """
        ...
