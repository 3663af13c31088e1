"""
Cron-style matching of a single timestamp.

**Conceptual**: Answers "would a cron entry with these fields fire at this
minute?" without running a scheduler. Useful for polling loops that wake up
once a minute and decide whether a job is due.

**Field syntax** (per field):
  - ``*``            any value
  - ``N``            exactly N
  - ``A-B``          A through B inclusive
  - ``*/S``          every S-th value starting at the field minimum
  - ``A-B/S``, ``N/S`` stepped range (``N/S`` runs from N to the field maximum)
  - ``X,Y,Z``        any of the comma-separated items above
Integers are accepted as exact values.

Day of week uses cron numbering: 0 = Sunday ... 6 = Saturday, 7 = Sunday.
All fields must match (day of month and day of week are ANDed).
"""

from datetime import datetime
from typing import FrozenSet, Union

from src.utils.errors import InvalidArgumentError

CronField = Union[str, int]

_FIELD_BOUNDS = {
    "minute": (0, 59),
    "hour": (0, 23),
    "day_of_month": (1, 31),
    "month": (1, 12),
    "day_of_week": (0, 7),
}


def _parse_number(name: str, text: str, low: int, high: int) -> int:
    if not text.isdigit():
        raise InvalidArgumentError(f"Cron field {name}: {text!r} is not a number")
    number = int(text)
    if not low <= number <= high:
        raise InvalidArgumentError(
            f"Cron field {name}: {number} is outside {low}-{high}"
        )
    return number


def _expand_item(name: str, item: str, low: int, high: int) -> range:
    base, _, step_text = item.partition("/")
    step = 1
    if step_text:
        step = _parse_number(name, step_text, 1, high - low + 1)

    if base == "*":
        return range(low, high + 1, step)

    if "-" in base:
        start_text, _, end_text = base.partition("-")
        start = _parse_number(name, start_text, low, high)
        end = _parse_number(name, end_text, low, high)
        if end < start:
            raise InvalidArgumentError(f"Cron field {name}: range {item!r} is reversed")
        return range(start, end + 1, step)

    start = _parse_number(name, base, low, high)
    if step_text:
        return range(start, high + 1, step)
    return range(start, start + 1)


def parse_cron_field(name: str, field: CronField) -> FrozenSet[int]:
    """
    Expand one cron field into the set of values it matches.

    Args:
        name: One of minute, hour, day_of_month, month, day_of_week.
        field: Field expression or integer.

    Raises:
        InvalidArgumentError: If the name is unknown or the expression is
            empty, malformed or out of range.

    Example:
        >>> sorted(parse_cron_field("minute", "*/15"))
        [0, 15, 30, 45]
    """
    if name not in _FIELD_BOUNDS:
        raise InvalidArgumentError(f"Unknown cron field: {name!r}")
    low, high = _FIELD_BOUNDS[name]

    if isinstance(field, bool):
        raise InvalidArgumentError(f"Cron field {name}: booleans are not valid values")
    if isinstance(field, int):
        field = str(field)
    if field is None or not str(field).strip():
        raise InvalidArgumentError(f"Cron field {name} must not be empty")

    values = set()
    for item in str(field).replace(" ", "").split(","):
        if not item:
            raise InvalidArgumentError(f"Cron field {name}: empty list item in {field!r}")
        values.update(_expand_item(name, item, low, high))

    if name == "day_of_week" and 7 in values:
        values.discard(7)
        values.add(0)
    return frozenset(values)


def as_cron_can_run(
    value: datetime,
    minute: CronField = "*",
    hour: CronField = "*",
    day_of_month: CronField = "*",
    month: CronField = "*",
    day_of_week: CronField = "*",
) -> bool:
    """
    Check whether a cron entry with the given fields would fire at ``value``.

    Seconds and sub-seconds of ``value`` are ignored.

    Example:
        >>> as_cron_can_run(datetime(2017, 10, 27, 12, 30), minute="*/15", hour="9-17")
        True
        >>> as_cron_can_run(datetime(2017, 10, 27, 12, 30), day_of_week="1-5")
        True   # Friday
    """
    if value is None:
        raise InvalidArgumentError("Timestamp must not be None")

    cron_weekday = (value.weekday() + 1) % 7
    checks = (
        ("minute", minute, value.minute),
        ("hour", hour, value.hour),
        ("day_of_month", day_of_month, value.day),
        ("month", month, value.month),
        ("day_of_week", day_of_week, cron_weekday),
    )
    # Every field is validated, even after an earlier miss
    allowed = [(parse_cron_field(name, field), actual) for name, field, actual in checks]
    return all(actual in values for values, actual in allowed)
