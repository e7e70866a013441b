"""Simulation epoch arithmetic and calendar conversion.

An epoch is a float counting fractional days since 1949-12-31 00:00:00 UTC,
the scale SGP4 uses for element set epochs. Conversions to and from the
civil calendar are exact to the second; leap seconds are not modeled.
"""

from __future__ import annotations

import calendar
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from debristrack.utils.constants import (
    DS50_JULIAN_DATE,
    MAX_SUPPORTED_YEAR,
    MIN_SUPPORTED_YEAR,
    SECONDS_PER_DAY,
)

logger = logging.getLogger(__name__)

_EPOCH_ZERO = datetime(1949, 12, 31, tzinfo=timezone.utc)


class InvalidDateError(ValueError):
    """A calendar field lies outside its civil range."""


@dataclass(frozen=True)
class CalendarTime:
    """A UTC calendar instant with whole-second resolution.

    Attributes:
        year: Gregorian year.
        month: Month of year, 1-12.
        day: Day of month.
        hour: Hour of day, 0-23.
        minute: Minute of hour, 0-59.
        second: Second of minute, 0-59.
    """

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    @classmethod
    def from_datetime(cls, dt: datetime) -> CalendarTime:
        """Truncate a datetime to whole seconds. Naive datetimes are taken as UTC."""
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc)
        return cls(dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)

    def to_datetime(self) -> datetime:
        return datetime(
            self.year, self.month, self.day,
            self.hour, self.minute, self.second,
            tzinfo=timezone.utc,
        )

    def __str__(self) -> str:
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d} "
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def days_in_month(year: int, month: int) -> int:
    """Number of days in ``month`` of ``year`` (Gregorian)."""
    if not 1 <= month <= 12:
        raise InvalidDateError(f"Month out of range: {month}")
    return calendar.monthrange(year, month)[1]


def _validate(cal: CalendarTime) -> None:
    if not MIN_SUPPORTED_YEAR <= cal.year <= MAX_SUPPORTED_YEAR:
        raise InvalidDateError(
            f"Year {cal.year} outside supported range "
            f"{MIN_SUPPORTED_YEAR}-{MAX_SUPPORTED_YEAR}"
        )
    if not 1 <= cal.month <= 12:
        raise InvalidDateError(f"Month out of range: {cal.month}")
    last_day = days_in_month(cal.year, cal.month)
    if not 1 <= cal.day <= last_day:
        raise InvalidDateError(
            f"Day {cal.day} out of range for {cal.year}-{cal.month:02d} (1-{last_day})"
        )
    if not 0 <= cal.hour <= 23:
        raise InvalidDateError(f"Hour out of range: {cal.hour}")
    if not 0 <= cal.minute <= 59:
        raise InvalidDateError(f"Minute out of range: {cal.minute}")
    if not 0 <= cal.second <= 59:
        raise InvalidDateError(f"Second out of range: {cal.second}")


def from_calendar(cal: CalendarTime) -> float:
    """Convert a calendar instant to an epoch.

    Args:
        cal: Calendar instant to convert.

    Returns:
        Fractional days since 1949-12-31 00:00:00 UTC.

    Raises:
        InvalidDateError: If any field is outside its civil range.
    """
    try:
        _validate(cal)
    except InvalidDateError as exc:
        logger.warning("Rejected calendar time %r: %s", cal, exc)
        raise

    delta = cal.to_datetime() - _EPOCH_ZERO
    whole_seconds = delta.days * 86400 + delta.seconds
    return whole_seconds / SECONDS_PER_DAY


def to_calendar(epoch: float) -> CalendarTime:
    """Convert an epoch to the calendar instant, rounded to the nearest second."""
    if not math.isfinite(epoch):
        raise ValueError(f"Epoch must be finite, got {epoch!r}")
    whole_seconds = round(epoch * SECONDS_PER_DAY)
    return CalendarTime.from_datetime(_EPOCH_ZERO + timedelta(seconds=whole_seconds))


def advance(epoch: float, delta_days: float) -> float:
    """Move an epoch forward (or backward, for negative deltas) by ``delta_days``."""
    return epoch + delta_days


def epoch_to_jd(epoch: float) -> tuple[float, float]:
    """Split an epoch into the (whole, fraction) Julian date pair SGP4 expects."""
    whole = math.floor(epoch)
    return DS50_JULIAN_DATE + whole, epoch - whole


def format_calendar(cal: CalendarTime) -> str:
    """Render a calendar instant for display, e.g. ``January 1, 2024 00:00:00``."""
    return (
        f"{calendar.month_name[cal.month]} {cal.day}, {cal.year} "
        f"{cal.hour:02d}:{cal.minute:02d}:{cal.second:02d}"
    )


def parse_calendar_fields(
    day: str | int,
    month: str | int,
    year: str | int,
    hour: str | int = 0,
    minute: str | int = 0,
    second: str | int = 0,
) -> CalendarTime:
    """Build a CalendarTime from raw text fields as typed into a date editor.

    Raises:
        InvalidDateError: If a field is not an integer.
    """
    fields = {"day": day, "month": month, "year": year,
              "hour": hour, "minute": minute, "second": second}
    values: dict[str, int] = {}
    for key, raw in fields.items():
        try:
            values[key] = int(str(raw).strip())
        except ValueError:
            raise InvalidDateError(f"{key.capitalize()} is not an integer: {raw!r}") from None
    return CalendarTime(**values)
