"""
Error classes shared by the singleton and date utilities.

**Conceptual**: Callers need to tell "nothing usable was given" apart from
"something was given but it is malformed", and a broken singleton constructor
apart from both. Each failure mode gets its own class so it can be caught
precisely, while the common base lets callers catch everything from this
library in one place.

**Hierarchy**:
    LazyDateError
      ├── InvalidArgumentError (also a ValueError)
      ├── DateParseError (also a ValueError)
      ├── SingletonConstructionError (also a RuntimeError)
      └── SingletonDisposedError (also a RuntimeError)
"""


class LazyDateError(Exception):
    """Base class for every error raised by this library."""
    pass


class InvalidArgumentError(LazyDateError, ValueError):
    """
    Raised when an argument is missing or unusable.

    Examples: ``parse_date(None)``, ``parse_date("   ")``, a zero granularity
    passed to ``round_up``, or a cron field value outside its range.
    """
    pass


class DateParseError(LazyDateError, ValueError):
    """
    Raised when a date string was given but does not match the expected format.

    Kept distinct from InvalidArgumentError so callers can separate
    "nothing given" from "given but malformed".
    """
    pass


class SingletonConstructionError(LazyDateError, RuntimeError):
    """
    Raised when a singleton's constructor fails.

    The original exception is chained as ``__cause__``. A failed attempt does
    not poison the singleton: the next call to ``instance()`` tries again.
    """
    pass


class SingletonDisposedError(LazyDateError, RuntimeError):
    """Raised when a singleton that was disposed before it was ever built is accessed."""
    pass
