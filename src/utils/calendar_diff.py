"""
Calendar difference between two timestamps.

**Conceptual**: "How long between these two moments?" has two answers. A
``timedelta`` gives elapsed seconds; a calendar difference gives the answer
a person would write down: "32 years, 10 months, 18 days, 6 hours...". The
second one depends on month lengths and leap years, so it cannot be derived
by dividing a number of seconds.

**Algorithm**: Borrow-based subtraction, the same way you subtract dates by
hand, starting from the smallest unit:

    late  2002-07-03 12:00:00.200
    early 1969-08-15 05:07:10.100

    microseconds  200000 - 100000            = 100000
    seconds       0 - 10 = -10   -> +60      = 50   (borrow a minute)
    minutes       0 - 7 - 1 = -8 -> +60      = 52   (borrow an hour)
    hours         12 - 5 - 1                 = 6
    days          3 - 15 = -12   -> +30 (Jun)= 18   (borrow a month)
    months        7 - 8 - 1 = -2 -> +12      = 10   (borrow a year)
    years         2002 - 1969 - 1            = 32

The day borrow uses the real length of the month before ``late``'s month
(28/29/30/31). When ``early``'s day is larger than that month (Jan 31 ->
Mar 1), the borrow uses ``early.day`` instead, which matches adding months
clamped to the month end. This keeps the round-trip law exact:
``calendar_diff(a, b).add_to(min(a, b)) == max(a, b)``.

Pure integer arithmetic throughout; no floating point.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.utils.errors import InvalidArgumentError

_MICROSECONDS_PER_SECOND = 1_000_000


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month (leap-year aware)."""
    return calendar.monthrange(year, month)[1]


def add_months(value: datetime, months: int) -> datetime:
    """
    Shift a datetime by whole months, clamping the day to the target month's end.

    Example: 2021-01-31 + 1 month -> 2021-02-28.
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class CalendarSpan:
    """
    Magnitude of elapsed calendar time between two timestamps.

    All fields are non-negative integers. ``microseconds`` holds the
    sub-millisecond remainder (0-999) so that spans between Python datetimes
    are exact; it is zero for millisecond-precision inputs.
    """
    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    milliseconds: int = 0
    microseconds: int = 0

    def is_zero(self) -> bool:
        return self == CalendarSpan()

    def add_to(self, start: datetime) -> datetime:
        """
        Apply this span to ``start``: whole months first (clamped to month end),
        then the fixed-length remainder.
        """
        shifted = add_months(start, self.years * 12 + self.months)
        return shifted + timedelta(
            days=self.days,
            hours=self.hours,
            minutes=self.minutes,
            seconds=self.seconds,
            milliseconds=self.milliseconds,
            microseconds=self.microseconds,
        )


def _order(a: datetime, b: datetime) -> tuple[datetime, datetime]:
    a_aware = a.tzinfo is not None and a.utcoffset() is not None
    b_aware = b.tzinfo is not None and b.utcoffset() is not None
    if a_aware != b_aware:
        raise InvalidArgumentError(
            "Cannot compute a calendar difference between a naive and an aware datetime"
        )
    early, late = (a, b) if a <= b else (b, a)
    if a_aware:
        # Wall-clock fields of both ends are read in the earlier value's zone
        late = late.astimezone(early.tzinfo)
    return early, late


def calendar_diff(a: datetime, b: datetime) -> CalendarSpan:
    """
    Compute the non-negative calendar difference between two timestamps.

    The order of the arguments does not matter: ``calendar_diff(a, b) ==
    calendar_diff(b, a)``. Equal timestamps give an all-zero span.

    Args:
        a: First timestamp.
        b: Second timestamp. Must be naive if ``a`` is naive and aware if
           ``a`` is aware. Aware inputs are ordered by instant and both
           read in the earlier one's timezone, whichever argument it is.

    Returns:
        CalendarSpan with years, months, days, hours, minutes, seconds,
        milliseconds and the sub-millisecond microseconds remainder.

    Raises:
        InvalidArgumentError: If either argument is None or only one is aware.

    Example:
        >>> calendar_diff(datetime(2002, 7, 3, 12, 0, 0, 200000),
        ...               datetime(1969, 8, 15, 5, 7, 10, 100000))
        CalendarSpan(years=32, months=10, days=18, hours=6, minutes=52, seconds=50, milliseconds=100, microseconds=0)
    """
    if a is None or b is None:
        raise InvalidArgumentError("calendar_diff requires two timestamps")

    early, late = _order(a, b)

    # Sub-second part, borrowing from seconds
    fraction = late.microsecond - early.microsecond
    borrow = 0
    if fraction < 0:
        fraction += _MICROSECONDS_PER_SECOND
        borrow = 1

    seconds = late.second - early.second - borrow
    borrow = 0
    if seconds < 0:
        seconds += 60
        borrow = 1

    minutes = late.minute - early.minute - borrow
    borrow = 0
    if minutes < 0:
        minutes += 60
        borrow = 1

    hours = late.hour - early.hour - borrow
    borrow = 0
    if hours < 0:
        hours += 24
        borrow = 1

    days = late.day - early.day - borrow
    borrow = 0
    if days < 0:
        if late.month == 1:
            previous_year, previous_month = late.year - 1, 12
        else:
            previous_year, previous_month = late.year, late.month - 1
        days += max(days_in_month(previous_year, previous_month), early.day)
        borrow = 1

    months = late.month - early.month - borrow
    borrow = 0
    if months < 0:
        months += 12
        borrow = 1

    years = late.year - early.year - borrow

    return CalendarSpan(
        years=years,
        months=months,
        days=days,
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        milliseconds=fraction // 1000,
        microseconds=fraction % 1000,
    )
