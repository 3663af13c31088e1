"""
Date and time convenience functions.

**Conceptual**: Small, well-defined conversions that come up everywhere:
  - Sortable strings ("YYYY-MM-DD", "YYYY-MM-DD HH:MM:SS") whose
    lexicographic order matches chronological order.
  - Strict parsing of the sortable date-time format.
  - Inclusive day-by-day ranges.
  - Rounding a timestamp up to an interval boundary.
  - Unix epoch seconds of a UTC date, and RFC 1123 strings for HTTP headers.

**Canonical format**: "YYYY-MM-DD HH:MM:SS" (space, not 'T'), 24-hour,
zero-padded, 4-digit year. Naive timestamps are interpreted in the configured
naive timezone (UTC unless LAZYDATE_NAIVE_TIMEZONE says otherwise) wherever
an absolute instant is needed.
"""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

import pandas as pd

from src.config.settings import get_settings
from src.utils.errors import DateParseError, InvalidArgumentError

SORTABLE_DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Fixed epoch for interval rounding: 0001-01-01T00:00:00
_ROUNDING_EPOCH = datetime.min
_ONE_MICROSECOND = timedelta(microseconds=1)

Granularity = Union[timedelta, pd.Timedelta, str]


def to_sortable_date(value: Union[date, datetime]) -> str:
    """
    Format a date or datetime as "YYYY-MM-DD".

    Example:
        >>> to_sortable_date(datetime(2016, 10, 10, 10, 10, 10))
        '2016-10-10'
    """
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def to_sortable_date_time(value: datetime) -> str:
    """
    Format a datetime as "YYYY-MM-DD HH:MM:SS" (sub-seconds and tzinfo dropped).

    A plain ``date`` is formatted at midnight.

    Example:
        >>> to_sortable_date_time(datetime(2016, 10, 10, 10, 10, 10))
        '2016-10-10 10:10:10'
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return (
        f"{to_sortable_date(value)} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )


def parse_date(value: Optional[str]) -> datetime:
    """
    Parse a "YYYY-MM-DD HH:MM:SS" string into a naive datetime.

    Only the full sortable date-time format is accepted: partial dates
    ("2017-10"), missing seconds ("2017-10-26 15:35") and other separators
    ("2017 10 26") are rejected.

    Args:
        value: String to parse.

    Returns:
        Naive datetime.

    Raises:
        InvalidArgumentError: If value is None, empty or whitespace only.
        DateParseError: If value is present but does not match the format.

    Example:
        >>> parse_date("2016-10-10 10:10:10")
        datetime.datetime(2016, 10, 10, 10, 10, 10)
    """
    if value is None or not str(value).strip():
        raise InvalidArgumentError("Date string must not be None, empty or whitespace")

    try:
        return datetime.strptime(value, SORTABLE_DATE_TIME_FORMAT)
    except (ValueError, TypeError) as e:
        raise DateParseError(
            f"Failed to parse {value!r} as a date. "
            f"Expected format 'YYYY-MM-DD HH:MM:SS' (e.g., '2017-10-26 15:35:00'). "
            f"Error: {e}"
        ) from e


class DateRange:
    """
    Inclusive, day-by-day sequence of datetimes from ``start`` to ``end``.

    **Functionally**:
    - Lazy: dates are produced on iteration, nothing is materialized up front.
    - Restartable: every ``iter()`` starts again from ``start``.
    - Finite: stops at the last value <= ``end``.
    - Empty (not reversed) when ``end < start``.

    Time-of-day is preserved: a range starting at 06:00 yields 06:00 every day.
    """

    def __init__(self, start: datetime, end: datetime):
        if start is None or end is None:
            raise InvalidArgumentError("date_range requires both start and end")
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[datetime]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        if self.end < self.start:
            return 0
        return (self.end - self.start).days + 1

    def __repr__(self) -> str:
        return f"DateRange(start={self.start!r}, end={self.end!r})"

    def to_index(self) -> pd.DatetimeIndex:
        """Materialize the range as a pandas DatetimeIndex (daily frequency)."""
        return pd.date_range(start=self.start, periods=len(self), freq="D")


def date_range(start: datetime, end: datetime) -> DateRange:
    """
    Build the inclusive one-day-step range between two datetimes.

    Example:
        >>> list(date_range(datetime(2017, 1, 1), datetime(2017, 1, 3)))
        [datetime.datetime(2017, 1, 1, 0, 0), datetime.datetime(2017, 1, 2, 0, 0), datetime.datetime(2017, 1, 3, 0, 0)]
    """
    return DateRange(start, end)


def _to_timedelta(granularity: Granularity) -> timedelta:
    if granularity is None:
        raise InvalidArgumentError("Granularity must not be None")
    if isinstance(granularity, str):
        try:
            granularity = pd.Timedelta(granularity)
        except ValueError as e:
            raise InvalidArgumentError(
                f"Granularity {granularity!r} is not a valid duration: {e}"
            ) from e
    if isinstance(granularity, pd.Timedelta):
        granularity = granularity.to_pytimedelta()
    if not isinstance(granularity, timedelta):
        raise InvalidArgumentError(
            f"Granularity must be a timedelta or duration string, got {type(granularity).__name__}"
        )
    return granularity


def round_up(value: datetime, granularity: Granularity) -> datetime:
    """
    Round a datetime up to the next multiple of ``granularity``.

    **Mathematical**: Boundaries are counted from 0001-01-01T00:00:00 in whole
    microseconds on the wall-clock fields:
        ticks   = value - epoch
        rounded = ceil(ticks / step) * step
    A value already on a boundary is returned unchanged. tzinfo is kept.

    Args:
        value: Datetime to round.
        granularity: Positive timedelta, pandas Timedelta, or pandas duration
                     string such as "15min" or "1h".

    Returns:
        Rounded datetime.

    Raises:
        InvalidArgumentError: If granularity is missing, unparseable or not positive.

    Example:
        >>> round_up(datetime(2017, 10, 27, 12, 35, 10), timedelta(minutes=15))
        datetime.datetime(2017, 10, 27, 12, 45)
    """
    if value is None:
        raise InvalidArgumentError("Timestamp must not be None")
    step = _to_timedelta(granularity) // _ONE_MICROSECOND
    if step <= 0:
        raise InvalidArgumentError(f"Granularity must be positive, got {granularity!r}")

    if isinstance(value, pd.Timestamp):
        # Year-1 arithmetic is outside pandas' nanosecond range
        value = value.to_pydatetime()

    ticks = (value.replace(tzinfo=None) - _ROUNDING_EPOCH) // _ONE_MICROSECOND
    rounded = -(-ticks // step) * step
    result = _ROUNDING_EPOCH + timedelta(microseconds=rounded)
    return result.replace(tzinfo=value.tzinfo)


def _to_utc_timestamp(value: Union[date, datetime, str]) -> pd.Timestamp:
    if value is None:
        raise InvalidArgumentError("Timestamp must not be None")
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize(get_settings().dates.naive_timezone)
    return ts.tz_convert("UTC")


def to_unix_epoch_date(value: Union[date, datetime, str]) -> int:
    """
    Seconds since 1970-01-01T00:00:00Z of the UTC date of ``value``.

    **Functionally**:
    - Aware values are converted to UTC; naive values are first localized to
      the configured naive timezone (default UTC).
    - The time of day is discarded after the conversion to UTC.
    - Range is bounded by pandas.Timestamp (years 1677-2262).

    Example:
        >>> to_unix_epoch_date(datetime(2017, 10, 27, tzinfo=timezone.utc))
        1509062400
    """
    midnight = _to_utc_timestamp(value).normalize()
    return int(midnight.timestamp())


def to_rfc1123_string(value: Union[date, datetime, str]) -> str:
    """
    Format an instant as an RFC 1123 (HTTP-date) string in GMT.

    Uses the same naive-timestamp policy as to_unix_epoch_date.

    Example:
        >>> to_rfc1123_string(datetime(2017, 10, 27, 8, 30, tzinfo=timezone.utc))
        'Fri, 27 Oct 2017 08:30:00 GMT'
    """
    ts = _to_utc_timestamp(value)
    # strftime %a/%b are locale dependent; HTTP dates need English names
    weekday = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")[ts.weekday()]
    month = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
             "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")[ts.month - 1]
    return (
        f"{weekday}, {ts.day:02d} {month} {ts.year:04d} "
        f"{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d} GMT"
    )
