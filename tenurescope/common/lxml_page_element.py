"""PageElement backed by an lxml parse of a view's current render."""

from __future__ import annotations

from urllib.parse import urljoin

from lxml import html

from tenurescope.common.checked_html import CheckedHtmlElement
from tenurescope.common.page_element import Link
from tenurescope.common.selector_utils import query_elements


class LxmlPageElement:
    """PageElement over a CheckedHtmlElement.

    Args:
        element: The checked lxml element.
        url: URL of the view the element was parsed from; relative links
            are resolved against it.
    """

    def __init__(self, element: CheckedHtmlElement, url: str = ""):
        self._element = element
        self._url = url

    @classmethod
    def from_html(cls, content: str, url: str = "") -> LxmlPageElement:
        """Parse a serialized document into its root element.

        An empty render parses as an empty document.
        """
        if not content.strip():
            content = "<html></html>"
        doc = html.document_fromstring(content)
        return cls(CheckedHtmlElement(doc, url), url)

    @property
    def url(self) -> str:
        return self._url

    def _wrap(self, elements: list[CheckedHtmlElement]) -> list[LxmlPageElement]:
        return [LxmlPageElement(e, self._url) for e in elements]

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        return self._wrap(
            self._element.checked_xpath(
                selector, description, min_count, max_count
            )
        )

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        return self._wrap(
            self._element.checked_css(
                selector, description, min_count, max_count
            )
        )

    def text_content(self) -> str:
        """Descendant text nodes joined by single spaces.

        Adjacent inline elements (``<span>Since</span><span>Jan 2020</span>``)
        read as separate words.
        """
        return " ".join(" ".join(self._element.itertext()).split())

    def get_attribute(self, name: str) -> str | None:
        return self._element.get(name)

    def find_links(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Links matched by ``selector``, hrefs resolved against the view URL.

        Raises:
            HTMLStructuralAssumptionException: If the number of matched
                elements is out of range.
        """
        links: list[Link] = []
        for elem in query_elements(
            self, selector, description, min_count, max_count
        ):
            href = elem.get_attribute("href")
            if href:
                links.append(
                    Link(
                        url=urljoin(self._url, href),
                        text=elem.text_content().strip(),
                    )
                )
        return links
