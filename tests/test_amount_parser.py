"""Tests for amount and hour parsing and formatting."""

from decimal import Decimal

import pytest

from timebill.utils.amount_parser import is_valid_granularity, parse_amount, parse_hours
from timebill.utils.formatting import format_currency, format_hours


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1200", Decimal("1200")),
        ("1 200,50", Decimal("1200.50")),
        ("1,200.50", Decimal("1200.50")),
        ("950 kr", Decimal("950")),
        ("SEK 1100", Decimal("1100")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1.5", Decimal("1.5")),
        ("1,25", Decimal("1.25")),
        ("2:15", Decimal("2.25")),
        ("0", Decimal("0")),
    ],
)
def test_parse_hours(text, expected):
    assert parse_hours(text) == expected


@pytest.mark.parametrize("text", ["-1", "1.1", "1:10", "x"])
def test_parse_hours_invalid(text):
    with pytest.raises(ValueError):
        parse_hours(text)


def test_granularity():
    assert is_valid_granularity(Decimal("7.75"))
    assert not is_valid_granularity(Decimal("7.8"))


def test_format_currency():
    assert format_currency(Decimal("12500.4")) == "12 500 kr"
    assert format_currency(Decimal("0")) == "0 kr"


def test_format_hours():
    assert format_hours(Decimal("7.5")) == "7.50 h"
