"""End-to-end tests of the analysis pipeline over static snapshots."""

from datetime import date

import pytest

from tenurescope.analyzer import (
    UNKNOWN_COMPANY_ID,
    UNKNOWN_COMPANY_NAME,
    TenureAnalyzer,
    company_id_from_url,
)
from tenurescope.common.exceptions import NoUsableDataException
from tenurescope.driver.static_view import StaticDocumentView
from tenurescope.extractor import ExtractionStrategy
from tenurescope.models import Confidence
from tenurescope.settings import AnalyzerSettings
from tenurescope.storage import AnalysisStore
from tests.mock_pages import COMPANY_URL, Member, people_page, profile_page

PAST_MEMBER = Member("bob-past", "Bob Past", "Analyst", "Mar 2021")


@pytest.fixture
def view(members):
    jane, john, ann = members
    return StaticDocumentView(
        [
            people_page([jane, john], next_button="next"),
            people_page([john, ann]),
        ],
        url=COMPANY_URL,
        past_pages=[people_page([PAST_MEMBER])],
    )


def make_analyzer(view, clock, today, **kwargs):
    return TenureAnalyzer(
        view,
        today=today,
        clock=clock,
        sleep=clock.sleep,
        **kwargs,
    )


def test_company_id_from_url():
    assert company_id_from_url(COMPANY_URL) == "acme"
    assert (
        company_id_from_url("https://www.linkedin.com/company/acme-inc?x=1")
        == "acme-inc"
    )
    assert company_id_from_url("https://example.com/") == UNKNOWN_COMPANY_ID


class TestAnalyze:
    async def test_current_and_past_members(self, view, clock, today):
        result = await make_analyzer(view, clock, today).analyze()

        assert result.company_id == "acme"
        assert result.company_name == "Acme Corp"
        assert [r.name for r in result.records] == [
            "Jane Doe",
            "John Roe",
            "Bob Past",
        ]
        # Jan 2020, Jul 2019 (year only) and Mar 2021 up to Jan 2024
        assert [r.tenure_months for r in result.records] == [48, 54, 34]
        assert result.records[2].is_past is True
        assert result.records[2].confidence == Confidence.MEDIUM

        stats = result.stats
        assert stats.count == 3
        assert stats.current_count == 2
        assert stats.past_count == 1
        assert stats.median == 48
        assert stats.min == 34
        assert stats.max == 54
        assert stats.histogram["2-3y"] == 1
        assert stats.histogram["3-5y"] == 2
        assert sum(stats.histogram.values()) == stats.count

    async def test_past_members_can_be_excluded(self, view, clock, today):
        settings = AnalyzerSettings(include_past_records=False)

        result = await make_analyzer(
            view, clock, today, settings=settings
        ).analyze()

        assert result.stats.past_count == 0
        assert not any(
            click == '[aria-label*="Past"]' for click in view.clicks
        )

    async def test_missing_past_filter_is_not_an_error(
        self, members, clock, today
    ):
        view = StaticDocumentView(
            [people_page(members, past_filter=False)], url=COMPANY_URL
        )

        result = await make_analyzer(view, clock, today).analyze()

        assert result.stats.count == 2
        assert result.stats.past_count == 0

    async def test_member_in_both_views_is_counted_once(
        self, members, clock, today
    ):
        jane, john, _ = members
        view = StaticDocumentView(
            [people_page([jane, john])],
            url=COMPANY_URL,
            past_pages=[people_page([john, PAST_MEMBER])],
        )

        result = await make_analyzer(view, clock, today).analyze()

        refs = [r.profile_ref for r in result.records]
        assert len(refs) == len(set(refs)) == 3
        assert result.stats.past_count == 1

    async def test_max_records_limits_each_view(self, view, clock, today):
        settings = AnalyzerSettings(max_records=1)

        result = await make_analyzer(
            view, clock, today, settings=settings
        ).analyze()

        assert [r.name for r in result.records] == ["Jane Doe", "Bob Past"]

    async def test_card_reads_are_rate_limited(self, clock, today):
        members = [
            Member(f"m{i}", f"Member {i}", "Engineer", "Jan 2018")
            for i in range(25)
        ]
        view = StaticDocumentView(
            [people_page(members, past_filter=False)], url=COMPANY_URL
        )

        result = await make_analyzer(view, clock, today).analyze()

        assert result.stats.count == 25
        # 20 reads per minute: the 21st read waits for the window to roll
        assert max(clock.sleeps) == pytest.approx(60.0)

    async def test_no_cards_raises(self, clock, today):
        view = StaticDocumentView([people_page([])], url=COMPANY_URL)

        with pytest.raises(NoUsableDataException) as exc_info:
            await make_analyzer(view, clock, today).analyze()

        assert exc_info.value.raw_records == 0
        assert "No member data found" in exc_info.value.message

    async def test_nothing_usable_after_normalization_raises(
        self, clock, today
    ):
        view = StaticDocumentView(
            [
                people_page(
                    [Member("new", "New Hire", "Engineer", "Jan 2024")],
                    past_filter=False,
                )
            ],
            url=COMPANY_URL,
        )

        with pytest.raises(NoUsableDataException) as exc_info:
            await make_analyzer(view, clock, today).analyze()

        assert exc_info.value.raw_records == 1
        assert exc_info.value.message == (
            "No valid member data could be processed."
        )

    async def test_unknown_company(self, members, clock, today):
        view = StaticDocumentView(
            [people_page(members, company_name="", past_filter=False)],
            url="https://example.com/people",
        )

        result = await make_analyzer(view, clock, today).analyze()

        assert result.company_id == UNKNOWN_COMPANY_ID
        assert result.company_name == UNKNOWN_COMPANY_NAME

    async def test_profile_strategy(self, clock, today):
        jane = Member("jane-doe", "Jane Doe", "Engineer", "Since 2010")
        view = StaticDocumentView(
            [people_page([jane], past_filter=False)],
            url=COMPANY_URL,
            profiles={
                jane.profile_url: profile_page(
                    "Jane Doe", "<span>Jan 2015 – Dec 2018</span>"
                )
            },
        )
        settings = AnalyzerSettings(strategy=ExtractionStrategy.PROFILE)

        result = await make_analyzer(
            view, clock, today, settings=settings
        ).analyze()

        (record,) = result.records
        assert record.start_date_text == "Jan 2015"
        assert record.end_date_text == "Dec 2018"
        assert record.tenure_months == 47
        assert view.subviews_opened == view.subviews_closed == 1


class TestAnalyzeWithStore:
    async def test_saves_and_reuses_cache(self, view, clock, today, tmp_path):
        async with AnalysisStore.open(tmp_path / "tenure.db") as store:
            first = await make_analyzer(
                view, clock, today, store=store
            ).analyze()

            empty_view = StaticDocumentView(
                [people_page([])], url=COMPANY_URL
            )
            second = await make_analyzer(
                empty_view, clock, today, store=store, use_cache=True
            ).analyze()

            saved = await store.get_last_analysis()

        assert second.records == first.records
        assert second.stats == first.stats
        assert saved is not None
        assert saved.company_id == "acme"
        assert saved.records == first.records

    async def test_cache_is_not_read_by_default(
        self, view, clock, today, tmp_path
    ):
        async with AnalysisStore.open(tmp_path / "tenure.db") as store:
            await make_analyzer(view, clock, today, store=store).analyze()

            empty_view = StaticDocumentView(
                [people_page([])], url=COMPANY_URL
            )
            with pytest.raises(NoUsableDataException):
                await make_analyzer(
                    empty_view, clock, today, store=store
                ).analyze()

    async def test_rerun_with_wider_settings_crawls_again(
        self, members, clock, today, tmp_path
    ):
        jane, john, _ = members

        def fresh_view():
            return StaticDocumentView(
                [people_page([jane, john])],
                url=COMPANY_URL,
                past_pages=[people_page([PAST_MEMBER])],
            )

        narrow = AnalyzerSettings(max_records=1, include_past_records=False)
        async with AnalysisStore.open(tmp_path / "tenure.db") as store:
            first = await make_analyzer(
                fresh_view(), clock, today, settings=narrow, store=store
            ).analyze()
            second = await make_analyzer(
                fresh_view(), clock, today, store=store
            ).analyze()

        assert first.stats.count == 1
        assert second.stats.count == 3
        assert second.stats.past_count == 1
