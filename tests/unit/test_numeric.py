from __future__ import annotations

import pytest

from backoffice.models.numeric import parse_number, round_display


@pytest.mark.parametrize(
    "value,expected",
    [
        ("100", 100.0),
        ("  80.5  ", 80.5),
        ("12.5 EUR", 12.5),
        ("-3", -3.0),
        (".5", 0.5),
        ("1e3", 1000.0),
        (7, 7.0),
        (2.25, 2.25),
    ],
)
def test_parse_number_accepts_leading_numeric(value, expected):
    assert parse_number(value) == expected


@pytest.mark.parametrize(
    "value",
    ["", "   ", "abc", "EUR 12", "nan", "Infinity", "-inf", None, True, float("nan"), float("inf"), [1]],
)
def test_parse_number_rejects(value):
    assert parse_number(value) is None


def test_parse_number_overflow_is_not_finite():
    assert parse_number("1e999") is None


def test_round_display():
    assert round_display(None) is None
    assert round_display(1.005 * 100) == 100.5
    assert round_display(149.999) == 150.0
