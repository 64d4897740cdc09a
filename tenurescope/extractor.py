"""Per-card extraction of raw member records.

Two strategies read the start date differently:

- ``CARD`` (fast): the date comes from the card's own caption text.
- ``PROFILE`` (accurate): the member's profile is opened in an isolated
  sub-view and its rendered text is scanned for a "Month Year – Present"
  style range. Profile reads are slow and closely watched by the source, so
  they have their own rate limiter and a long cool-down between fetches.

Both strategies drop a card whenever a required field (profile reference,
title, start date) is missing, and neither ever raises: any failure while
reading a card means "no record" for that card.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import urlsplit, urlunsplit

from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
)
from tenurescope.models import RawRecord
from tenurescope.rate_limiter import RateLimiter
from tenurescope.selectors import (
    DEFAULT_SELECTORS,
    SelectorConfig,
    SelectorSet,
    find_first,
    resolve_text,
)

if TYPE_CHECKING:
    from tenurescope.common.page_element import PageElement
    from tenurescope.view import DocumentView

logger = logging.getLogger(__name__)

_MONTH_WORD = (
    r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?"
)
MONTH_YEAR = rf"{_MONTH_WORD}\s+\d{{4}}"

CAPTION_DATE_PATTERN = re.compile(
    rf"\b({MONTH_YEAR})|\b(\d{{4}})\b", re.IGNORECASE
)
DATE_RANGE_PATTERN = re.compile(
    rf"\b({MONTH_YEAR})\s*[-–—]\s*(present|{MONTH_YEAR})",
    re.IGNORECASE,
)
YEAR_TOKEN_PATTERN = re.compile(r"\b(\d{4})\b")


class ExtractionStrategy(str, Enum):
    """Where the start date of a member is read from."""

    CARD = "card"
    PROFILE = "profile"


def clean_date_text(text: str) -> str:
    """Normalize a captured date fragment ("Sept.  2020" -> "Sept 2020")."""
    return " ".join(text.replace(".", " ").split())


def canonical_profile_url(url: str) -> str:
    """Drop query string, fragment and trailing slash from a profile URL."""
    parts = urlsplit(url)
    path = parts.path.rstrip("/") or "/"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def extract_profile_ref(
    card: PageElement, selector_set: SelectorSet
) -> str | None:
    """Return the canonical URL of the first profile link in a card."""
    for selector in selector_set.queries:
        try:
            links = card.find_links(selector, "profile link", min_count=0)
        except HTMLStructuralAssumptionException:
            continue
        for link in links:
            return canonical_profile_url(link.url)
    return None


def find_caption_date(text: str) -> str | None:
    """Pull the first "Month Year" or bare year token out of caption text.

    Examples:
        >>> find_caption_date("Since Jan 2020 · 4 yrs")
        'Jan 2020'
        >>> find_caption_date("Joined 2019")
        '2019'
        >>> find_caption_date("Software Engineer") is None
        True
    """
    match = CAPTION_DATE_PATTERN.search(text)
    if not match:
        return None
    return clean_date_text(match.group(1) or match.group(2))


def scan_profile_text(
    text: str,
    title: str | None = None,
    min_year: int = 1950,
    today: date | None = None,
) -> tuple[str, str | None] | None:
    """Find a start (and optional end) date in rendered profile text.

    The first "Month Year - Present" or "Month Year - Month Year" range
    wins. Without a range, the plausible year nearest to where ``title``
    appears in the text is used; if the title is not present, the first
    plausible year is used.

    Args:
        text: Visible text of the profile view.
        title: The member's title as shown on their card.
        min_year: Earliest year considered plausible.
        today: Evaluation date, bounding the latest plausible year.

    Returns:
        ``(start_text, end_text)`` with ``end_text`` None for an ongoing
        position, or None when no date could be found.
    """
    range_match = DATE_RANGE_PATTERN.search(text)
    if range_match:
        start = clean_date_text(range_match.group(1))
        end_raw = range_match.group(2)
        end = None if end_raw.lower() == "present" else clean_date_text(end_raw)
        return start, end

    max_year = (today or date.today()).year
    candidates = [
        m
        for m in YEAR_TOKEN_PATTERN.finditer(text)
        if min_year <= int(m.group(1)) <= max_year
    ]
    if not candidates:
        return None

    anchor = text.lower().find(title.lower()) if title else -1
    if anchor < 0:
        return candidates[0].group(1), None

    nearest = min(candidates, key=lambda m: abs(m.start() - anchor))
    return nearest.group(1), None


class RecordExtractor:
    """Extracts a RawRecord from a member card using its caption text.

    Args:
        selectors: Selector configuration for card fields.

    Example:
        extractor = RecordExtractor()
        for card in cards:
            record = await extractor.extract(card)
    """

    strategy = ExtractionStrategy.CARD

    def __init__(self, selectors: SelectorConfig = DEFAULT_SELECTORS) -> None:
        self.selectors = selectors

    async def extract(
        self, card: PageElement, is_past: bool = False
    ) -> RawRecord | None:
        """Extract one record, or None if any required field is missing."""
        try:
            return self.extract_card(card, is_past)
        except Exception:
            logger.exception("Error extracting member card")
            return None

    def extract_card(
        self, card: PageElement, is_past: bool = False
    ) -> RawRecord | None:
        profile_ref = extract_profile_ref(card, self.selectors.profile_link)
        if not profile_ref:
            logger.debug("Skipping card without profile link")
            return None

        title = resolve_text(card, self.selectors.title, "title")
        if not title:
            logger.debug(f"Skipping {profile_ref}: no title")
            return None

        start_date_text = self.extract_start_date(card)
        if not start_date_text:
            logger.debug(f"Skipping {profile_ref}: no start date in caption")
            return None

        return RawRecord(
            name=resolve_text(card, self.selectors.name, "name"),
            title=title,
            start_date_text=start_date_text,
            profile_ref=profile_ref,
            location=resolve_text(card, self.selectors.location, "location"),
            is_past=is_past,
        )

    def extract_start_date(self, card: PageElement) -> str | None:
        caption = resolve_text(card, self.selectors.tenure, "tenure caption")
        if not caption:
            return None
        return find_caption_date(caption)


@dataclass
class ProfileFetchConfig:
    """Configuration for profile-view date extraction.

    Attributes:
        max_fetches_per_window: Profile views allowed per minute. Default: 6
        cooldown: Minimum seconds between two profile views. Default: 10.0
        render_timeout: Seconds to wait for a date range to render. Default: 8.0
        poll_interval: Seconds between render checks. Default: 0.25
        min_year: Earliest plausible year for the fallback scan. Default: 1950
    """

    max_fetches_per_window: int = 6
    cooldown: float = 10.0
    render_timeout: float = 8.0
    poll_interval: float = 0.25
    min_year: int = 1950


class ProfileRecordExtractor(RecordExtractor):
    """Extracts records by reading dates from each member's profile view.

    Name, title and profile reference still come from the card; only the
    dates come from the profile. Fetches are throttled by a rate limiter
    owned by this extractor, separate from the card-level limiter, and
    spaced by ``config.cooldown`` seconds.

    Args:
        view: The view used to open profile sub-views.
        selectors: Selector configuration.
        config: Fetch pacing and render-wait settings.
        rate_limiter: Limiter for profile fetches; one is created from
            ``config`` when omitted.
        clock: Returns the current time in seconds.
        sleep: Awaitable sleep taking seconds.
    """

    strategy = ExtractionStrategy.PROFILE

    def __init__(
        self,
        view: DocumentView,
        selectors: SelectorConfig = DEFAULT_SELECTORS,
        config: ProfileFetchConfig | None = None,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(selectors)
        self.view = view
        self.config = config or ProfileFetchConfig()
        self._clock = clock
        self._sleep = sleep
        self.rate_limiter = rate_limiter or RateLimiter(
            max_calls=self.config.max_fetches_per_window,
            name="profile",
            clock=clock,
            sleep=sleep,
        )
        self._last_fetch: float | None = None

    async def extract(
        self, card: PageElement, is_past: bool = False
    ) -> RawRecord | None:
        try:
            return await self._extract_from_profile(card, is_past)
        except Exception:
            logger.exception("Error extracting member from profile")
            return None

    async def _extract_from_profile(
        self, card: PageElement, is_past: bool
    ) -> RawRecord | None:
        profile_ref = extract_profile_ref(card, self.selectors.profile_link)
        if not profile_ref:
            logger.debug("Skipping card without profile link")
            return None

        title = resolve_text(card, self.selectors.title, "title")
        if not title:
            logger.debug(f"Skipping {profile_ref}: no title")
            return None

        dates = await self.fetch_dates(profile_ref, title)
        if dates is None:
            logger.debug(f"Skipping {profile_ref}: no dates on profile")
            return None
        start_date_text, end_date_text = dates

        return RawRecord(
            name=resolve_text(card, self.selectors.name, "name"),
            title=title,
            start_date_text=start_date_text,
            end_date_text=end_date_text,
            profile_ref=profile_ref,
            location=resolve_text(card, self.selectors.location, "location"),
            is_past=is_past,
        )

    async def fetch_dates(
        self, profile_ref: str, title: str | None
    ) -> tuple[str, str | None] | None:
        """Open a profile sub-view and scan its text for dates."""
        await self._wait_for_cooldown()
        await self.rate_limiter.throttle()

        logger.info(f"Fetching profile {profile_ref}")
        try:
            async with self.view.open_subview(profile_ref) as subview:
                text = await self._wait_for_render(subview)
        finally:
            self._last_fetch = self._clock()

        return scan_profile_text(text, title, min_year=self.config.min_year)

    async def _wait_for_cooldown(self) -> None:
        if self._last_fetch is None:
            return
        remaining = self.config.cooldown - (self._clock() - self._last_fetch)
        if remaining > 0:
            logger.debug(f"Profile cool-down: waiting {remaining:.2f}s")
            await self._sleep(remaining)

    async def _wait_for_render(self, subview: DocumentView) -> str:
        """Poll the sub-view until a date range shows up or time runs out.

        Returns:
            The last text read from the profile content region.
        """
        deadline = self._clock() + self.config.render_timeout
        while True:
            root = await subview.snapshot()
            found = find_first(
                root, self.selectors.profile_content, "profile content"
            )
            text = found[1].text_content() if found else ""
            if DATE_RANGE_PATTERN.search(text):
                return text
            if self._clock() >= deadline:
                logger.debug(
                    f"No date range rendered on {subview.url} within "
                    f"{self.config.render_timeout}s"
                )
                return text
            await self._sleep(self.config.poll_interval)
