"""Paginated crawl over a member directory view.

The crawler drives a DocumentView through successive pages or "show more"
expansions, collecting each member card once (by profile reference) until a
target count is reached. It moves through these phases:

    COLLECTING -> (REQUESTING_MORE -> WAITING)* -> DONE

Every stop is a normal result. Running out of advance controls, finding a
disabled control, or hitting the page cap all end the crawl with whatever
was collected so far.

After each advance the crawler backs off for
``min(base_delay * 1.5 ** (page_index - 1), max_delay)`` seconds and then
polls until the loading indicator is gone, giving up on the poll after
``ready_timeout`` seconds and carrying on with what has rendered.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
)
from tenurescope.extractor import extract_profile_ref
from tenurescope.selectors import (
    DEFAULT_SELECTORS,
    SelectorConfig,
    SelectorSet,
    find_all,
    find_first,
    safe_query,
)

if TYPE_CHECKING:
    from tenurescope.common.page_element import PageElement
    from tenurescope.view import DocumentView

logger = logging.getLogger(__name__)


class CrawlPhase(str, Enum):
    COLLECTING = "collecting"
    REQUESTING_MORE = "requesting_more"
    WAITING = "waiting"
    DONE = "done"


class StopReason(str, Enum):
    """Why a crawl reached DONE."""

    TARGET_REACHED = "target_reached"
    NO_ADVANCE_CONTROL = "no_advance_control"
    ADVANCE_DISABLED = "advance_disabled"
    PAGE_CAP = "page_cap"


@dataclass
class CrawlConfig:
    """Pacing and limits for a crawl.

    Attributes:
        base_delay: Backoff after the first advance, in seconds. Default: 1.0
        backoff_factor: Multiplier applied per page. Default: 1.5
        max_delay: Upper bound on the backoff, in seconds. Default: 5.0
        max_pages: Hard cap on pages visited. Default: 10
        ready_timeout: Seconds to wait for the loading indicator to clear
            after an advance. Default: 3.0
        load_timeout: Seconds to wait for the view to settle after a
            filter change. Default: 5.0
        poll_interval: Seconds between readiness checks. Default: 0.1
    """

    base_delay: float = 1.0
    backoff_factor: float = 1.5
    max_delay: float = 5.0
    max_pages: int = 10
    ready_timeout: float = 3.0
    load_timeout: float = 5.0
    poll_interval: float = 0.1

    def backoff_delay(self, page_index: int) -> float:
        """Seconds to wait after advancing from ``page_index``."""
        return min(
            self.base_delay * self.backoff_factor ** (page_index - 1),
            self.max_delay,
        )


@dataclass
class CrawlState:
    """Bookkeeping for one crawl call. Never shared between crawls."""

    seen_profile_refs: set[str] = field(default_factory=set)
    page_index: int = 1
    collected: list[PageElement] = field(default_factory=list)
    phase: CrawlPhase = CrawlPhase.COLLECTING
    stop_reason: StopReason | None = None
    pages_read: int = 0

    def transition(self, phase: CrawlPhase) -> None:
        logger.debug(f"Crawl phase {self.phase.value} -> {phase.value}")
        self.phase = phase


@dataclass
class CrawlResult:
    """Cards collected by a crawl, in the order they were first seen."""

    cards: list[PageElement]
    state: CrawlState

    @property
    def stop_reason(self) -> StopReason | None:
        return self.state.stop_reason


def is_control_disabled(element: PageElement) -> bool:
    """Whether a button-like element is disabled."""
    if element.get_attribute("disabled") is not None:
        return True
    if (element.get_attribute("aria-disabled") or "").lower() == "true":
        return True
    classes = (element.get_attribute("class") or "").split()
    return "disabled" in classes


class PaginationCrawler:
    """Collects unique member cards from a paginated view.

    Args:
        selectors: Selector configuration (cards, advance, loading indicator).
        config: Pacing and limits.
        clock: Returns the current time in seconds.
        sleep: Awaitable sleep taking seconds.

    Example:
        crawler = PaginationCrawler()
        result = await crawler.crawl(view, target=50)
        for card in result.cards:
            ...
    """

    def __init__(
        self,
        selectors: SelectorConfig = DEFAULT_SELECTORS,
        config: CrawlConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.selectors = selectors
        self.config = config or CrawlConfig()
        self._clock = clock
        self._sleep = sleep

    async def crawl(self, view: DocumentView, target: int) -> CrawlResult:
        """Collect up to ``target`` unique cards from ``view``.

        Args:
            view: The directory view to crawl.
            target: Number of unique cards wanted.

        Returns:
            CrawlResult with at most ``target`` cards.
        """
        state = CrawlState()

        while True:
            root = await view.snapshot()
            added = self.collect_visible(root, state)
            state.pages_read += 1
            logger.info(
                f"Page {state.page_index}: {added} new cards, "
                f"{len(state.collected)}/{target} collected"
            )

            if len(state.collected) >= target:
                return self._finish(state, StopReason.TARGET_REACHED, target)

            state.transition(CrawlPhase.REQUESTING_MORE)
            control = self.find_advance_control(root)
            if control is None:
                logger.info("No advance control found, stopping crawl")
                return self._finish(state, StopReason.NO_ADVANCE_CONTROL)

            selector, element = control
            if is_control_disabled(element):
                logger.info("Advance control is disabled, stopping crawl")
                return self._finish(state, StopReason.ADVANCE_DISABLED)

            try:
                await view.click(selector)
            except HTMLStructuralAssumptionException as e:
                logger.warning(f"Advance control vanished before click: {e}")
                return self._finish(state, StopReason.NO_ADVANCE_CONTROL)

            state.transition(CrawlPhase.WAITING)
            await self._sleep(self.config.backoff_delay(state.page_index))
            await self.wait_until_ready(view, self.config.ready_timeout)

            state.page_index += 1
            if state.page_index > self.config.max_pages:
                logger.info(
                    f"Reached page cap ({self.config.max_pages}), stopping crawl"
                )
                return self._finish(state, StopReason.PAGE_CAP)

            state.transition(CrawlPhase.COLLECTING)

    def collect_visible(self, root: PageElement, state: CrawlState) -> int:
        """Add every visible card not seen before. Returns the number added."""
        added = 0
        for card in find_all(root, self.selectors.card, "member cards"):
            profile_ref = extract_profile_ref(card, self.selectors.profile_link)
            if profile_ref is None or profile_ref in state.seen_profile_refs:
                continue
            state.seen_profile_refs.add(profile_ref)
            state.collected.append(card)
            added += 1
        return added

    def find_advance_control(
        self, root: PageElement
    ) -> tuple[str, PageElement] | None:
        """Locate the next-page or expand-more control, in priority order."""
        return find_first(root, self.selectors.advance, "advance control")

    async def wait_until_ready(
        self, view: DocumentView, timeout: float | None = None
    ) -> bool:
        """Poll until the loading indicator is absent.

        Args:
            view: The view to poll.
            timeout: Seconds before giving up; defaults to
                ``config.load_timeout``.

        Returns:
            True if the view became ready, False if the poll timed out.
        """
        if timeout is None:
            timeout = self.config.load_timeout
        deadline = self._clock() + timeout

        while True:
            root = await view.snapshot()
            if not self._is_loading(root, self.selectors.loading_indicator):
                return True
            if self._clock() >= deadline:
                logger.warning(
                    f"View still loading after {timeout}s, continuing anyway"
                )
                return False
            await self._sleep(self.config.poll_interval)

    @staticmethod
    def _is_loading(root: PageElement, indicator: SelectorSet) -> bool:
        return any(
            safe_query(root, selector, "loading indicator")
            for selector in indicator.queries
        )

    @staticmethod
    def _finish(
        state: CrawlState, reason: StopReason, target: int | None = None
    ) -> CrawlResult:
        state.stop_reason = reason
        state.transition(CrawlPhase.DONE)
        cards = state.collected[:target] if target is not None else state.collected
        logger.info(
            f"Crawl done ({reason.value}) after {state.pages_read} pages "
            f"with {len(cards)} cards"
        )
        return CrawlResult(cards=list(cards), state=state)
