"""DocumentView over saved HTML snapshots.

Useful for analyzing pages captured earlier and for exercising the pipeline
without a browser. The view holds an ordered list of page snapshots for the
current members and, optionally, one for past members:

- clicking the past-members filter switches to the past-member pages
- clicking any other control shows the next snapshot in the active list
  (the last snapshot stays shown once the list is exhausted)

Profile sub-views are served from a mapping of profile URL to HTML.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
)
from tenurescope.common.lxml_page_element import LxmlPageElement
from tenurescope.common.selector_utils import query_elements, selector_type
from tenurescope.extractor import canonical_profile_url
from tenurescope.selectors import DEFAULT_SELECTORS, SelectorSet

logger = logging.getLogger(__name__)


class StaticDocumentView:
    """DocumentView backed by HTML strings.

    Args:
        pages: Snapshots of the current-members view, in advance order.
        url: URL the snapshots were taken from.
        past_pages: Snapshots of the past-members view.
        profiles: Profile HTML keyed by profile URL.
        past_filter: Selectors that switch to the past-members view.

    Attributes:
        clicks: Every selector clicked, in order.
        subviews_opened: Number of sub-views opened.
        subviews_closed: Number of sub-views released.
    """

    def __init__(
        self,
        pages: Sequence[str],
        url: str = "",
        past_pages: Sequence[str] = (),
        profiles: Mapping[str, str] | None = None,
        past_filter: SelectorSet = DEFAULT_SELECTORS.past_filter,
    ) -> None:
        if not pages:
            raise ValueError("StaticDocumentView needs at least one page")
        self._pages = list(pages)
        self._past_pages = list(past_pages)
        self._active = self._pages
        self._index = 0
        self._url = url
        self._profiles = {
            canonical_profile_url(ref): content
            for ref, content in (profiles or {}).items()
        }
        self._past_filter = past_filter
        self.clicks: list[str] = []
        self.subviews_opened = 0
        self.subviews_closed = 0

    @classmethod
    def from_files(
        cls,
        paths: Sequence[Path],
        url: str = "",
        past_paths: Sequence[Path] = (),
        profiles_dir: Path | None = None,
        profile_base_url: str = "https://www.linkedin.com/in/",
    ) -> StaticDocumentView:
        """Build a view from saved HTML files.

        Profile files are named after the profile slug (``jane-doe.html``
        serves ``<profile_base_url>jane-doe``).
        """
        profiles: dict[str, str] = {}
        if profiles_dir is not None:
            for path in sorted(profiles_dir.glob("*.html")):
                profiles[f"{profile_base_url}{path.stem}"] = path.read_text(
                    encoding="utf-8"
                )
        return cls(
            [p.read_text(encoding="utf-8") for p in paths],
            url=url,
            past_pages=[p.read_text(encoding="utf-8") for p in past_paths],
            profiles=profiles,
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def page_index(self) -> int:
        """Zero-based index of the snapshot currently shown."""
        return self._index

    async def snapshot(self) -> LxmlPageElement:
        return LxmlPageElement.from_html(self._active[self._index], self._url)

    async def click(self, selector: str) -> None:
        root = await self.snapshot()
        matches = query_elements(root, selector, "click target")
        if not matches:
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type=selector_type(selector),
                description=f"Click target not found: {selector}",
                expected_min=1,
                expected_max=1,
                actual_count=0,
                request_url=self._url,
            )
        self.clicks.append(selector)

        if selector in self._past_filter.queries and self._past_pages:
            logger.debug("Switching to past-member snapshots")
            self._active = self._past_pages
            self._index = 0
        elif self._index < len(self._active) - 1:
            self._index += 1

    @asynccontextmanager
    async def open_subview(self, url: str) -> AsyncIterator[StaticDocumentView]:
        content = self._profiles.get(canonical_profile_url(url), "")
        self.subviews_opened += 1
        try:
            yield StaticDocumentView([content], url=url)
        finally:
            self.subviews_closed += 1
