"""Selector sets and the fallback-chain resolver.

The member directory is third-party markup that is revised independently of
this project, so every field is located through an ordered list of candidate
selectors: the primary one first, then each fallback. The first candidate
that produces non-empty text wins.

The selector configuration is plain data. A replacement set can be loaded
from JSON to follow a markup change without touching any pipeline code.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
)
from tenurescope.common.selector_utils import query_elements

if TYPE_CHECKING:
    from tenurescope.common.page_element import PageElement

logger = logging.getLogger(__name__)


class SelectorSet(BaseModel):
    """One primary selector plus ordered fallbacks for a single field."""

    model_config = ConfigDict(frozen=True)

    primary: str
    fallback: list[str] = Field(default_factory=list)

    @property
    def queries(self) -> list[str]:
        """All candidate selectors in priority order."""
        return [self.primary, *self.fallback]


def _text_button(*phrases: str) -> str:
    """XPath matching a <button> whose normalized text contains a phrase."""
    lowered = (
        "translate(normalize-space(.), "
        "'ABCDEFGHIJKLMNOPQRSTUVWXYZ', 'abcdefghijklmnopqrstuvwxyz')"
    )
    conditions = " or ".join(
        f"contains({lowered}, '{phrase}')" for phrase in phrases
    )
    return f"//button[{conditions}]"


class SelectorConfig(BaseModel):
    """Every selector the pipeline uses, grouped by concern.

    Attributes:
        card: Member card containers on the people page.
        name: Member name within a card.
        title: Member job title within a card.
        tenure: Caption text carrying the start date within a card.
        location: Member location within a card.
        profile_link: Link to the member's own profile within a card.
        advance: Next-page and expand-more controls, in priority order.
        loading_indicator: Spinner shown while more cards are loading.
        past_filter: Control that switches the view to past members.
        company_name: Company display name in the page header.
        profile_content: Main content region of a member profile view.
    """

    model_config = ConfigDict(frozen=True)

    card: SelectorSet
    name: SelectorSet
    title: SelectorSet
    tenure: SelectorSet
    location: SelectorSet
    profile_link: SelectorSet
    advance: SelectorSet
    loading_indicator: SelectorSet
    past_filter: SelectorSet
    company_name: SelectorSet
    profile_content: SelectorSet

    @classmethod
    def from_file(cls, path: Path | str) -> SelectorConfig:
        """Load a selector configuration from a JSON file.

        Keys missing from the file keep their default selector sets.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        merged = DEFAULT_SELECTORS.model_dump()
        merged.update(data)
        return cls.model_validate(merged)


DEFAULT_SELECTORS = SelectorConfig(
    card=SelectorSet(
        primary='[data-entity-urn*="company-employee"]',
        fallback=[
            ".org-people-profile-card",
            '[data-control-name="people_profile_card"]',
            "li.ember-view.org-people-profile-card__profile-card",
        ],
    ),
    name=SelectorSet(
        primary=".org-people-profile-card__profile-title",
        fallback=[
            '[aria-label*="View"]',
            "a.app-aware-link",
            ".artdeco-entity-lockup__title",
        ],
    ),
    title=SelectorSet(
        primary=".artdeco-entity-lockup__subtitle",
        fallback=[
            ".t-14.t-black--light",
            ".org-people-profile-card__profile-info",
            ".lt-line-clamp--single-line",
        ],
    ),
    tenure=SelectorSet(
        primary=".artdeco-entity-lockup__caption",
        fallback=[".t-12.t-black--light", "time", ".lt-line-clamp"],
    ),
    location=SelectorSet(primary='[class*="location"]'),
    profile_link=SelectorSet(primary='a[href*="/in/"]'),
    advance=SelectorSet(
        primary='button[aria-label*="Next"]',
        fallback=[
            'button[aria-label*="next"]',
            ".artdeco-pagination__button--next",
            "button.pagination__next",
            _text_button("show more", "see more", "load more"),
            'button[aria-label*="Show more"]',
            'button[aria-label*="show more"]',
        ],
    ),
    loading_indicator=SelectorSet(primary=".artdeco-spinner"),
    past_filter=SelectorSet(primary='[aria-label*="Past"]'),
    company_name=SelectorSet(primary=".org-top-card-summary__title"),
    profile_content=SelectorSet(
        primary="main",
        fallback=["#experience", "body"],
    ),
)


def resolve_first(
    queries: Iterable[str],
    resolve_one: Callable[[str], str | None],
) -> str | None:
    """Return the first non-empty trimmed result over an ordered query list.

    Args:
        queries: Candidate queries in priority order.
        resolve_one: Resolves a single query, returning text or None.

    Returns:
        The first non-empty trimmed text, or None if every query missed.
    """
    for query in queries:
        value = resolve_one(query)
        if value is None:
            continue
        value = value.strip()
        if value:
            return value
    return None


def find_first(
    element: PageElement, selector_set: SelectorSet, description: str
) -> tuple[str, PageElement] | None:
    """Find the first element matched by a selector set.

    Returns:
        The winning selector and the first element it matched, or None.
    """
    for selector in selector_set.queries:
        matches = safe_query(element, selector, description)
        if matches:
            return selector, matches[0]
    return None


def find_all(
    element: PageElement, selector_set: SelectorSet, description: str
) -> list[PageElement]:
    """Return all matches of the first selector in the set that matches."""
    for selector in selector_set.queries:
        matches = safe_query(element, selector, description)
        logger.debug(
            f"Trying selector {selector!r} for {description}: "
            f"{len(matches)} matches"
        )
        if matches:
            return matches
    return []


def safe_query(
    element: PageElement, selector: str, description: str
) -> list[PageElement]:
    """Run a selector, treating invalid selectors as a miss."""
    try:
        return query_elements(element, selector, description, min_count=0)
    except HTMLStructuralAssumptionException as e:
        logger.debug(f"Selector {selector!r} failed for {description}: {e}")
        return []


def resolve_text(
    element: PageElement, selector_set: SelectorSet, description: str = ""
) -> str | None:
    """Resolve a field's text from an element using a selector set.

    Tries the primary selector, then each fallback. For each selector only
    the first matching element is read. Never raises.

    Args:
        element: The element to search within (usually a member card).
        selector_set: Candidate selectors for the field.
        description: Human-readable field name for logging.

    Returns:
        The first non-empty trimmed text found, or None.
    """

    def resolve_one(selector: str) -> str | None:
        matches = safe_query(element, selector, description or selector)
        if not matches:
            return None
        return matches[0].text_content()

    return resolve_first(selector_set.queries, resolve_one)
