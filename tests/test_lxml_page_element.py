"""Tests for LxmlPageElement and the checked query layer beneath it."""

import pytest
from lxml import html

from tenurescope.common.checked_html import CheckedHtmlElement
from tenurescope.common.exceptions import (
    HTMLStructuralAssumptionException,
)
from tenurescope.common.lxml_page_element import (
    LxmlPageElement,
)
from tenurescope.common.page_element import Link

PAGE_URL = "https://www.linkedin.com/company/acme/people/"


@pytest.fixture
def directory():
    """A small member list with one link-less entry."""
    html_content = """
    <html>
    <body>
        <h1 class="title">Acme Corp</h1>
        <ul id="members">
            <li class="member">
                <a href="/in/jane-doe/" class="profile">Jane Doe</a>
                <span class="caption">Since Jan 2020</span>
            </li>
            <li class="member">
                <a href="https://www.linkedin.com/in/john-roe" class="profile">
                    John Roe
                </a>
                <span class="caption">Joined 2019</span>
            </li>
            <li class="member">
                <a class="profile">Private member</a>
            </li>
        </ul>
    </body>
    </html>
    """
    return LxmlPageElement.from_html(html_content, PAGE_URL)


def test_query_xpath_wraps_results(directory):
    members = directory.query_xpath("//li[@class='member']", "members")

    assert len(members) == 3
    assert all(isinstance(m, LxmlPageElement) for m in members)


def test_nested_queries_are_relative(directory):
    first = directory.query_css("li.member", "members")[0]

    captions = first.query_xpath(".//span", "caption", max_count=1)

    assert captions[0].text_content() == "Since Jan 2020"


def test_query_css(directory):
    captions = directory.query_css("span.caption", "captions", min_count=2)

    assert [c.text_content() for c in captions] == [
        "Since Jan 2020",
        "Joined 2019",
    ]


def test_non_element_xpath_results_are_dropped(directory):
    assert directory.query_xpath("//a/@href", "hrefs", min_count=0) == []
    assert directory.query_xpath("count(//li)", "count", min_count=0) == []


def test_get_attribute(directory):
    link = directory.query_css("a.profile", "links")[0]

    assert link.get_attribute("href") == "/in/jane-doe/"
    assert link.get_attribute("class") == "profile"
    assert link.get_attribute("data-missing") is None


def test_from_html_keeps_url(directory):
    assert directory.url == PAGE_URL
    assert directory.query_css("li", "members")[0].url == PAGE_URL


def test_from_html_empty_content():
    """An empty render parses to an empty document instead of failing."""
    page = LxmlPageElement.from_html("   ")

    assert page.query_css("li", "members", min_count=0) == []


def test_find_links_resolves_urls(directory):
    links = directory.find_links("a.profile", "profile links")

    assert links == [
        Link(url="https://www.linkedin.com/in/jane-doe/", text="Jane Doe"),
        Link(url="https://www.linkedin.com/in/john-roe", text="John Roe"),
    ]


def test_find_links_by_xpath(directory):
    links = directory.find_links("//li[2]//a", "second member link")

    assert [link.text for link in links] == ["John Roe"]


def test_find_links_counts_elements_without_href(directory):
    with pytest.raises(HTMLStructuralAssumptionException):
        directory.find_links("a.profile", "profile links", max_count=2)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_count": 4},
        {"min_count": 1, "max_count": 2},
    ],
)
def test_count_validation(directory, kwargs):
    with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
        directory.query_css("li.member", "members", **kwargs)

    assert exc_info.value.actual_count == 3
    assert exc_info.value.selector == "li.member"


def test_invalid_selectors_raise_structural_errors(directory):
    with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
        directory.query_xpath("//li[", "broken xpath", min_count=0)
    assert exc_info.value.selector_type == "xpath"

    with pytest.raises(HTMLStructuralAssumptionException) as exc_info:
        directory.query_css("li[[", "broken css", min_count=0)
    assert exc_info.value.selector_type == "css"


def test_checked_element_delegates_to_lxml():
    checked = CheckedHtmlElement(html.fromstring("<p class='x'>Hi</p>"))

    assert checked.tag == "p"
    assert checked.get("class") == "x"
    assert checked.text_content() == "Hi"


def test_text_content_separates_adjacent_elements():
    page = LxmlPageElement.from_html(
        "<div><span>Full-time</span><span>Mar 2019 - Present</span>\n"
        "   <b>Remote</b></div>"
    )

    (div,) = page.query_css("div", "experience")

    assert div.text_content() == "Full-time Mar 2019 - Present Remote"
