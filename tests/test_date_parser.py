"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta
from tutordesk.utils.date_parser import PERIOD_NAMES, get_date_range, parse_date, year_to_date

# Thursday
REFERENCE = date(2024, 3, 14)


def test_parse_absolute_dates():
    """Test parsing ISO and written dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15/01/2024") == date(2024, 1, 15)
    assert parse_date("  2024-09-01 ") == date(2024, 9, 1)


def test_parse_defaults_to_current_day():
    assert parse_date("today") == date.today()
    assert parse_date("Tomorrow") == date.today() + timedelta(days=1)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("today", date(2024, 3, 14)),
        ("yesterday", date(2024, 3, 13)),
        ("tomorrow", date(2024, 3, 15)),
        ("this week", date(2024, 3, 11)),
        ("last week", date(2024, 3, 4)),
        ("next week", date(2024, 3, 18)),
        ("this month", date(2024, 3, 1)),
        ("last month", date(2024, 2, 1)),
        ("next month", date(2024, 4, 1)),
        ("this year", date(2024, 1, 1)),
        ("last year", date(2023, 1, 1)),
        ("last monday", date(2024, 3, 11)),
        ("last friday", date(2024, 3, 8)),
    ],
)
def test_parse_relative_to_reference_date(text, expected):
    assert parse_date(text, today=REFERENCE) == expected


def test_last_weekday_on_same_weekday_goes_back_a_week():
    assert parse_date("last thursday", today=REFERENCE) == date(2024, 3, 7)


def test_last_month_in_january():
    assert parse_date("last month", today=date(2025, 1, 20)) == date(2024, 12, 1)


def test_parse_invalid():
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("last invalid")
    with pytest.raises(ValueError):
        parse_date("not a date")


@pytest.mark.parametrize(
    "period, expected",
    [
        ("this-week", (date(2024, 3, 11), REFERENCE)),
        ("this-month", (date(2024, 3, 1), REFERENCE)),
        ("this-quarter", (date(2024, 1, 1), REFERENCE)),
        ("this-year", (date(2024, 1, 1), REFERENCE)),
        ("last-week", (date(2024, 3, 4), date(2024, 3, 10))),
        ("last-month", (date(2024, 2, 1), date(2024, 2, 29))),
        ("last-quarter", (date(2023, 10, 1), date(2023, 12, 31))),
        ("last-year", (date(2023, 1, 1), date(2023, 12, 31))),
    ],
)
def test_get_date_range(period, expected):
    assert get_date_range(period, REFERENCE) == expected


def test_every_period_name_resolves():
    for name in PERIOD_NAMES:
        start, end = get_date_range(name, REFERENCE)
        assert start <= end <= REFERENCE


def test_last_week_runs_monday_to_sunday():
    start, end = get_date_range("last-week", date(2024, 3, 11))
    assert start.weekday() == 0
    assert end.weekday() == 6
    assert (start, end) == (date(2024, 3, 4), date(2024, 3, 10))


def test_this_month_on_first_day():
    first = date(2024, 6, 1)
    assert get_date_range("this-month", first) == (first, first)


def test_this_quarter_mid_year():
    assert get_date_range("this-quarter", date(2024, 5, 20)) == (date(2024, 4, 1), date(2024, 5, 20))


def test_get_date_range_invalid_period():
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("invalid-period")


def test_year_to_date():
    assert year_to_date(date(2024, 8, 3)) == (date(2024, 1, 1), date(2024, 8, 3))
