"""Playwright-backed DocumentView for live, JavaScript-rendered pages.

The view keeps the pipeline away from live browser objects:

1. The page is rendered in a real browser
2. Each snapshot() serializes the rendered DOM to HTML
3. The HTML is parsed with lxml and returned as a PageElement

Clicks are replayed against the live page by selector. Profile sub-views are
separate pages in the same browser context and are always closed when the
sub-view context exits.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from playwright.async_api import (
    Page,
    async_playwright,
)
from playwright.async_api import (
    TimeoutError as PlaywrightTimeoutError,
)

from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
)
from tenurescope.common.lxml_page_element import LxmlPageElement
from tenurescope.common.selector_utils import (
    selector_type,
    to_playwright_selector,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class PlaywrightDocumentView:
    """DocumentView over a Playwright page.

    Args:
        page: The live page showing the member directory.
        click_timeout: Milliseconds to wait for a clicked element.
        navigation_timeout: Milliseconds to wait for a sub-view to load.

    Example:
        async with PlaywrightDocumentView.launch(url) as view:
            analyzer = TenureAnalyzer(view, settings)
            result = await analyzer.analyze()
    """

    def __init__(
        self,
        page: Page,
        click_timeout: int = 5000,
        navigation_timeout: int = 30000,
    ) -> None:
        self._page = page
        self.click_timeout = click_timeout
        self.navigation_timeout = navigation_timeout

    @property
    def url(self) -> str:
        return self._page.url

    async def snapshot(self) -> LxmlPageElement:
        html_content = await self._page.content()
        return LxmlPageElement.from_html(html_content, self._page.url)

    async def click(self, selector: str) -> None:
        """Click the first element matching ``selector`` in the live page.

        Raises:
            HTMLStructuralAssumptionException: If no element matches within
                ``click_timeout``.
        """
        locator = self._page.locator(to_playwright_selector(selector)).first
        try:
            await locator.click(timeout=self.click_timeout)
        except PlaywrightTimeoutError as e:
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type=selector_type(selector),
                description=f"Click target timeout: {selector}",
                expected_min=1,
                expected_max=1,
                actual_count=0,
                request_url=self._page.url,
            ) from e

    @asynccontextmanager
    async def open_subview(
        self, url: str
    ) -> AsyncIterator[PlaywrightDocumentView]:
        """Open ``url`` in a new page of the same browser context."""
        page = await self._page.context.new_page()
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.navigation_timeout,
            )
            yield PlaywrightDocumentView(
                page,
                click_timeout=self.click_timeout,
                navigation_timeout=self.navigation_timeout,
            )
        finally:
            await page.close()
            logger.debug(f"Closed sub-view for {url}")

    @classmethod
    @asynccontextmanager
    async def launch(
        cls,
        url: str,
        headless: bool = True,
        user_data_dir: Path | None = None,
        browser_type: str = "chromium",
        locale: str = "en-US",
    ) -> AsyncIterator[PlaywrightDocumentView]:
        """Start a browser, open ``url`` and yield a view over it.

        Args:
            url: Company people page to open.
            headless: Run the browser without a window.
            user_data_dir: Optional persistent browser profile directory.
                The browser reuses whatever state that profile already has.
            browser_type: "chromium", "firefox" or "webkit".
            locale: Browser locale.

        Yields:
            A PlaywrightDocumentView over the opened page.
        """
        async with async_playwright() as pw:
            launcher = getattr(pw, browser_type)
            browser = None
            if user_data_dir is not None:
                context = await launcher.launch_persistent_context(
                    str(user_data_dir), headless=headless, locale=locale
                )
            else:
                browser = await launcher.launch(headless=headless)
                context = await browser.new_context(locale=locale)

            try:
                page = await context.new_page()
                logger.info(f"Opening {url}")
                await page.goto(url, wait_until="domcontentloaded")
                yield cls(page)
            finally:
                await context.close()
                if browser is not None:
                    await browser.close()
