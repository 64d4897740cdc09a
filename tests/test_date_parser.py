"""Tests for the heuristic month/year parser."""

from datetime import date

import pytest

from tenurescope.date_parser import parse_date, parse_month


class TestParseMonth:
    @pytest.mark.parametrize(
        "word,expected",
        [
            ("Jan", 1),
            ("january", 1),
            ("SEPT", 9),
            ("September", 9),
            ("Dec", 12),
            ("Janvier", 1),
            ("Octobre", 10),
        ],
    )
    def test_known_words(self, word, expected):
        assert parse_month(word) == expected

    @pytest.mark.parametrize("word", ["", "Q1", "Summer", "2020"])
    def test_unknown_words(self, word):
        assert parse_month(word) is None


class TestParseDate:
    def test_month_and_year(self):
        assert parse_date("Jan 2020") == date(2020, 1, 1)

    def test_full_month_name(self):
        assert parse_date("September 2018") == date(2018, 9, 1)

    def test_surrounding_text_is_ignored(self):
        assert parse_date("  Started Mar 2015 ") == date(2015, 3, 1)

    def test_year_only_means_mid_year(self):
        assert parse_date("2020") == date(2020, 7, 1)

    @pytest.mark.parametrize(
        "text", ["not a date", "", None, "Present", "Foo 2020x", "20201"]
    )
    def test_unparseable(self, text):
        assert parse_date(text) is None

    def test_unknown_month_word_with_year_is_unparseable(self):
        assert parse_date("Summer 2020") is None
