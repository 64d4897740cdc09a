"""Pipeline entry point: crawl, extract, normalize, aggregate.

TenureAnalyzer wires the components together for one company view:

    PaginationCrawler -> RecordExtractor -> TenureCalculator -> StatisticsEngine

Cards are processed one at a time, in crawl order, each read preceded by the
card-level rate limiter. Every collaborator (settings, selectors, limiter,
store) is passed in; nothing is read from module globals.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from datetime import date
from typing import TYPE_CHECKING, Protocol

from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
    NoUsableDataException,
)
from tenurescope.crawler import CrawlConfig, PaginationCrawler
from tenurescope.extractor import (
    ExtractionStrategy,
    ProfileFetchConfig,
    ProfileRecordExtractor,
    RecordExtractor,
)
from tenurescope.models import AnalysisResult, NormalizedRecord, RawRecord
from tenurescope.rate_limiter import RateLimiter
from tenurescope.selectors import (
    DEFAULT_SELECTORS,
    SelectorConfig,
    find_first,
    resolve_text,
)
from tenurescope.settings import AnalyzerSettings
from tenurescope.statistics import StatisticsEngine
from tenurescope.tenure import TenureCalculator

if TYPE_CHECKING:
    from tenurescope.view import DocumentView

logger = logging.getLogger(__name__)

COMPANY_ID_PATTERN = re.compile(r"/company/([^/?#]+)")
UNKNOWN_COMPANY_ID = "unknown"
UNKNOWN_COMPANY_NAME = "Unknown Company"


class AnalysisSink(Protocol):
    """The part of a store the analyzer needs."""

    async def get_from_cache(
        self, company_id: str
    ) -> list[NormalizedRecord] | None: ...

    async def save_analysis(self, analysis: AnalysisResult) -> None: ...


def company_id_from_url(url: str) -> str:
    """Company identifier from a ``/company/<id>/...`` URL.

    Examples:
        >>> company_id_from_url("https://www.linkedin.com/company/acme/people/")
        'acme'
        >>> company_id_from_url("https://example.com/")
        'unknown'
    """
    match = COMPANY_ID_PATTERN.search(url)
    return match.group(1) if match else UNKNOWN_COMPANY_ID


def unseen_records(
    seen: list[RawRecord], records: list[RawRecord]
) -> list[RawRecord]:
    """Records whose profile ref does not already appear in ``seen``.

    A member listed in both the current and past views keeps the record
    from the first crawl.
    """
    refs = {r.profile_ref for r in seen}
    fresh = [r for r in records if r.profile_ref not in refs]
    if len(fresh) < len(records):
        logger.debug(
            f"Dropped {len(records) - len(fresh)} members already collected"
        )
    return fresh


class TenureAnalyzer:
    """Runs the full analysis pipeline over one company view.

    Args:
        view: The company people view.
        settings: Target count, past-member toggle and extraction strategy.
        selectors: Selector configuration.
        store: Optional storage collaborator for cache lookups and saving.
        rate_limiter: Card-level limiter; a default one is created if omitted.
        crawl_config: Crawl pacing and limits.
        profile_config: Profile fetch pacing (profile strategy only).
        today: Evaluation date for ongoing tenures.
        use_cache: Reuse fresh cached records from ``store`` instead of
            crawling. Off by default; cached entries do not record the
            settings that produced them.
        clock: Returns the current time in seconds.
        sleep: Awaitable sleep taking seconds.

    Example:
        analyzer = TenureAnalyzer(view, AnalyzerSettings(max_records=100))
        result = await analyzer.analyze()
        print(result.stats.median)
    """

    def __init__(
        self,
        view: DocumentView,
        settings: AnalyzerSettings | None = None,
        selectors: SelectorConfig = DEFAULT_SELECTORS,
        store: AnalysisSink | None = None,
        rate_limiter: RateLimiter | None = None,
        crawl_config: CrawlConfig | None = None,
        profile_config: ProfileFetchConfig | None = None,
        today: date | None = None,
        use_cache: bool = False,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.view = view
        self.settings = settings or AnalyzerSettings()
        self.selectors = selectors
        self.store = store
        self.use_cache = use_cache
        self.rate_limiter = rate_limiter or RateLimiter(
            clock=clock, sleep=sleep
        )
        self.crawler = PaginationCrawler(
            selectors, crawl_config, clock=clock, sleep=sleep
        )
        self.extractor = self._build_extractor(profile_config, clock, sleep)
        self.calculator = TenureCalculator(today=today)
        self.engine = StatisticsEngine()

    def _build_extractor(
        self,
        profile_config: ProfileFetchConfig | None,
        clock: Callable[[], float],
        sleep: Callable[[float], Awaitable[None]],
    ) -> RecordExtractor:
        if self.settings.strategy == ExtractionStrategy.PROFILE:
            return ProfileRecordExtractor(
                self.view,
                self.selectors,
                profile_config,
                clock=clock,
                sleep=sleep,
            )
        return RecordExtractor(self.selectors)

    async def analyze(self) -> AnalysisResult:
        """Run the pipeline and return the analysis.

        Raises:
            NoUsableDataException: If no valid record survived the pipeline.
        """
        company_id = company_id_from_url(self.view.url)
        company_name = await self.company_name()
        logger.info(
            f"Analyzing {company_name} ({company_id}) with "
            f"{self.extractor.strategy.value} strategy, "
            f"target {self.settings.max_records}"
        )

        if self.store is not None and self.use_cache:
            cached = await self.store.get_from_cache(company_id)
            if cached:
                logger.info(
                    f"Using {len(cached)} cached records for {company_id}"
                )
                return self._build_result(company_id, company_name, cached)

        raw_records, cards_seen = await self.collect(is_past=False)

        if self.settings.include_past_records:
            if await self.switch_to_past():
                past_records, past_cards = await self.collect(is_past=True)
                raw_records.extend(
                    unseen_records(raw_records, past_records)
                )
                cards_seen += past_cards

        logger.info(
            f"Collected {len(raw_records)} raw records from {cards_seen} cards"
        )
        if not raw_records:
            raise NoUsableDataException(self.view.url, cards_seen, 0)

        records = self.calculator.process_records(raw_records)
        if not records:
            raise NoUsableDataException(
                self.view.url, cards_seen, len(raw_records)
            )

        result = self._build_result(company_id, company_name, records)
        logger.info(
            f"Analysis done: {result.stats.count} records, "
            f"median tenure {result.stats.median} months"
        )

        if self.store is not None:
            await self.store.save_analysis(result)

        return result

    async def collect(self, is_past: bool) -> tuple[list[RawRecord], int]:
        """Crawl the current view and extract records in crawl order.

        Returns:
            The extracted records and the number of cards crawled.
        """
        crawl = await self.crawler.crawl(self.view, self.settings.max_records)

        records: list[RawRecord] = []
        for card in crawl.cards:
            await self.rate_limiter.throttle()
            record = await self.extractor.extract(card, is_past=is_past)
            if record is not None:
                records.append(record)
                logger.debug(f"Extracted {record.name!r}, {record.title!r}")

        label = "past" if is_past else "current"
        logger.info(
            f"Extracted {len(records)} {label} records "
            f"from {len(crawl.cards)} cards"
        )
        return records, len(crawl.cards)

    async def switch_to_past(self) -> bool:
        """Click the past-members filter and wait for the view to settle."""
        root = await self.view.snapshot()
        control = find_first(root, self.selectors.past_filter, "past filter")
        if control is None:
            logger.warning("Past members filter not found, skipping")
            return False

        try:
            await self.view.click(control[0])
        except HTMLStructuralAssumptionException as e:
            logger.warning(f"Could not switch to past members: {e}")
            return False
        await self.crawler.wait_until_ready(self.view)
        return True

    async def company_name(self) -> str:
        root = await self.view.snapshot()
        name = resolve_text(root, self.selectors.company_name, "company name")
        return name or UNKNOWN_COMPANY_NAME

    def _build_result(
        self,
        company_id: str,
        company_name: str,
        records: list[NormalizedRecord],
    ) -> AnalysisResult:
        return AnalysisResult(
            company_id=company_id,
            company_name=company_name,
            timestamp=int(time.time() * 1000),
            records=records,
            stats=self.engine.calculate(records),
        )
