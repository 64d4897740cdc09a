"""DocumentView protocol: the pipeline's only window onto the source page.

A view is an already-rendered document that the pipeline can read and act
on. Reading always goes through ``snapshot()``, which returns a static
PageElement parsed from the current render; the pipeline never holds a live
browser object. Acting is limited to clicking a control identified by a
selector and opening another URL (a member profile) in an isolated
sub-view.

Implementations live in ``tenurescope.driver``.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tenurescope.common.page_element import PageElement


class DocumentView(Protocol):
    """A rendered document that can be snapshotted and interacted with."""

    @property
    def url(self) -> str:
        """URL of the document currently shown."""
        ...

    async def snapshot(self) -> PageElement:
        """Parse the current render into a static PageElement."""
        ...

    async def click(self, selector: str) -> None:
        """Click the first element matching an XPath or CSS selector.

        Raises:
            HTMLStructuralAssumptionException: If nothing matches.
        """
        ...

    def open_subview(
        self, url: str
    ) -> AbstractAsyncContextManager[DocumentView]:
        """Open ``url`` in an isolated sub-view.

        The sub-view is released when the context exits, on every path.
        """
        ...
