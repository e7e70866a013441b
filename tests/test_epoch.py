"""Tests for epoch arithmetic and calendar conversion."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from debristrack.core.epoch import (
    CalendarTime,
    InvalidDateError,
    advance,
    days_in_month,
    epoch_to_jd,
    format_calendar,
    from_calendar,
    is_leap_year,
    parse_calendar_fields,
    to_calendar,
)
from debristrack.utils.constants import DS50_JULIAN_DATE


def test_next_day():
    """Advancing one day from New Year 2024 lands on January 2."""
    e0 = from_calendar(CalendarTime(2024, 1, 1, 0, 0, 0))
    assert to_calendar(advance(e0, 1.0)) == CalendarTime(2024, 1, 2, 0, 0, 0)


def test_reference_instant():
    assert from_calendar(CalendarTime(1950, 1, 1)) == 1.0
    assert to_calendar(1.0) == CalendarTime(1950, 1, 1)


@pytest.mark.parametrize("cal", [
    CalendarTime(1950, 1, 1, 0, 0, 0),
    CalendarTime(1969, 7, 20, 20, 17, 40),
    CalendarTime(2000, 2, 29, 12, 0, 0),
    CalendarTime(2024, 2, 29, 23, 59, 59),
    CalendarTime(2024, 12, 31, 23, 59, 59),
    CalendarTime(2038, 1, 19, 3, 14, 7),
    CalendarTime(2100, 12, 31, 23, 59, 59),
])
def test_round_trip(cal: CalendarTime):
    assert to_calendar(from_calendar(cal)) == cal


def test_round_trip_every_second_of_a_minute():
    for second in range(60):
        cal = CalendarTime(2031, 6, 30, 23, 59, second)
        assert to_calendar(from_calendar(cal)) == cal


def test_to_calendar_rounds_to_nearest_second():
    e0 = from_calendar(CalendarTime(2024, 3, 1, 10, 0, 0))
    assert to_calendar(e0 + 0.4 / 86400) == CalendarTime(2024, 3, 1, 10, 0, 0)
    assert to_calendar(e0 + 0.6 / 86400) == CalendarTime(2024, 3, 1, 10, 0, 1)


def test_advance_backwards_across_month():
    e0 = from_calendar(CalendarTime(2024, 3, 1))
    assert to_calendar(advance(e0, -1.0)) == CalendarTime(2024, 2, 29)


def test_advance_fractional_day():
    e0 = from_calendar(CalendarTime(2023, 12, 31, 18, 0, 0))
    assert to_calendar(advance(e0, 0.25)) == CalendarTime(2024, 1, 1, 0, 0, 0)


class TestValidation:
    @pytest.mark.parametrize("cal", [
        CalendarTime(2023, 2, 29),
        CalendarTime(2100, 2, 29),
        CalendarTime(2024, 4, 31),
        CalendarTime(2024, 13, 1),
        CalendarTime(2024, 0, 1),
        CalendarTime(2024, 1, 0),
        CalendarTime(2024, 1, 32),
        CalendarTime(2024, 1, 1, 24, 0, 0),
        CalendarTime(2024, 1, 1, -1, 0, 0),
        CalendarTime(2024, 1, 1, 0, 60, 0),
        CalendarTime(2024, 1, 1, 0, 0, 60),
        CalendarTime(1949, 12, 31),
        CalendarTime(2101, 1, 1),
    ])
    def test_out_of_range_rejected(self, cal: CalendarTime):
        with pytest.raises(InvalidDateError):
            from_calendar(cal)

    def test_invalid_date_is_value_error(self):
        with pytest.raises(ValueError):
            from_calendar(CalendarTime(2024, 2, 30))

    def test_leap_years(self):
        assert is_leap_year(2024)
        assert is_leap_year(2000)
        assert not is_leap_year(2100)
        assert not is_leap_year(2023)

    @pytest.mark.parametrize("year,month,expected", [
        (2024, 2, 29), (2023, 2, 28), (2000, 2, 29), (2100, 2, 28),
        (2024, 1, 31), (2024, 4, 30), (2024, 9, 30), (2024, 12, 31),
    ])
    def test_days_in_month(self, year: int, month: int, expected: int):
        assert days_in_month(year, month) == expected


class TestCalendarFields:
    def test_parse_text_fields(self):
        cal = parse_calendar_fields("14", "2", "2024", "13", "05", " 09")
        assert cal == CalendarTime(2024, 2, 14, 13, 5, 9)

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidDateError, match="Month"):
            parse_calendar_fields("14", "Feb", "2024")

    def test_empty_field_rejected(self):
        with pytest.raises(InvalidDateError):
            parse_calendar_fields("", "2", "2024")

    def test_format(self):
        assert format_calendar(CalendarTime(2024, 1, 1)) == "January 1, 2024 00:00:00"
        assert format_calendar(CalendarTime(1999, 12, 31, 23, 59, 9)) == "December 31, 1999 23:59:09"

    def test_datetime_bridge(self):
        dt = datetime(2024, 2, 14, 13, 10, 30, 750000, tzinfo=timezone.utc)
        cal = CalendarTime.from_datetime(dt)
        assert cal == CalendarTime(2024, 2, 14, 13, 10, 30)
        assert cal.to_datetime() == dt.replace(microsecond=0)

    def test_str(self):
        assert str(CalendarTime(2024, 2, 3, 4, 5, 6)) == "2024-02-03 04:05:06"


def test_epoch_to_jd_split():
    epoch = from_calendar(CalendarTime(2024, 1, 1, 12, 0, 0))
    jd, fr = epoch_to_jd(epoch)
    assert 0.0 <= fr < 1.0
    assert jd == pytest.approx(2460310.5)
    assert jd + fr == pytest.approx(DS50_JULIAN_DATE + epoch)
