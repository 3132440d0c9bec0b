"""Tests for date parser with relative dates."""

import pytest
from datetime import date, datetime, timedelta
from dateutil.relativedelta import relativedelta

from ledgerkit.domain.errors import ValidationError
from ledgerkit.utils.date_parser import coerce_date, parse_date


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


def test_parse_today():
    assert parse_date("Today ") == date.today()


def test_parse_yesterday_and_tomorrow():
    assert parse_date("yesterday") == date.today() - timedelta(days=1)
    assert parse_date("tomorrow") == date.today() + timedelta(days=1)


def test_parse_last_month():
    """'last month' is the first day of the previous month."""
    expected = (date.today() - relativedelta(months=1)).replace(day=1)
    assert parse_date("last month") == expected


def test_parse_this_periods():
    today = date.today()
    assert parse_date("this month") == today.replace(day=1)
    assert parse_date("this year") == date(today.year, 1, 1)
    assert parse_date("this week") == today - timedelta(days=today.weekday())


def test_parse_last_week():
    """Monday of last week."""
    result = parse_date("last week")
    assert result.weekday() == 0
    assert 7 <= (date.today() - result).days <= 13


def test_parse_last_weekday():
    """A named weekday is always in the past, at most a week ago."""
    result = parse_date("last friday")
    assert result.weekday() == 4
    assert 1 <= (date.today() - result).days <= 7


@pytest.mark.parametrize("value", ["", "   ", "not a date", "2024-13-45"])
def test_invalid_dates(value):
    with pytest.raises(ValidationError):
        parse_date(value)


class TestCoerceDate:
    """Tests for coerce_date."""

    def test_passes_dates_through(self):
        assert coerce_date(date(2025, 2, 1)) == date(2025, 2, 1)

    def test_truncates_datetimes(self):
        assert coerce_date(datetime(2025, 2, 1, 13, 30)) == date(2025, 2, 1)

    def test_parses_strings(self):
        assert coerce_date("2025-02-01") == date(2025, 2, 1)

    def test_error_names_field(self):
        with pytest.raises(ValidationError, match="Invalid end date"):
            coerce_date("whenever", "end date")

    def test_rejects_other_types(self):
        with pytest.raises(ValidationError):
            coerce_date(20250201)
