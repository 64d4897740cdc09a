"""Shared fixtures for tenurescope tests."""

from __future__ import annotations

from datetime import date

import pytest

from tests.mock_pages import Member


class FakeClock:
    """Manual clock with an awaitable sleep that advances time.

    Pass the instance as ``clock`` and ``fake.sleep`` as ``sleep`` to any
    component that paces itself; nothing ever waits in real time.
    """

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def today() -> date:
    return date(2024, 1, 15)


@pytest.fixture
def members() -> list[Member]:
    """Three current members; the third has no date in its caption."""
    return [
        Member("jane-doe", "Jane Doe", "Engineer", "Since Jan 2020"),
        Member("john-roe", "John Roe", "Designer", "Joined 2019"),
        Member("ann-poe", "Ann Poe", "Product Manager", "Product"),
    ]
