"""
Lazy singleton base class.

**Conceptual**: Some objects should exist once per process (a shared registry,
a connection pool, a loaded lookup table) but are expensive enough that they
should only be built when something actually needs them. Subclassing
LazySingleton gives a class exactly that: one instance, built on first
``instance()`` call, safe under concurrent first access, with deterministic
cleanup through ``dispose()``.

**Usage**:
    class HolidayCalendar(LazySingleton):
        def __init__(self):
            self.days = load_holidays()

        def close(self):
            self.days.clear()

    calendar = HolidayCalendar.instance()   # built here, once
    HolidayCalendar.instance() is calendar  # True
    HolidayCalendar.dispose()               # close() runs once

Every subclass (including subclasses of subclasses) owns its own cell, so
``Child.instance()`` never returns a ``Parent`` and vice versa. Callers obtain
the shared object only through ``instance()``; calling the constructor
directly builds an unrelated, unmanaged object.

See ``src.abstractions.lazy`` for the lifecycle and failure policy.
"""

from typing import Optional, Type, TypeVar

from src.abstractions.lazy import LazyCell, SingletonState

S = TypeVar("S", bound="LazySingleton")


class LazySingleton:
    """
    Base class providing a lazily built, thread-safe, disposable shared instance.

    Subclasses must be constructible without arguments. A subclass that
    defines ``close()`` gets it called exactly once by ``dispose()``.
    """

    _cell: LazyCell

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._cell = LazyCell(cls, name=cls.__qualname__)

    @classmethod
    def _get_cell(cls) -> LazyCell:
        if cls is LazySingleton:
            raise TypeError("LazySingleton has no shared instance of its own; subclass it")
        return cls._cell

    @classmethod
    def instance(cls: Type[S]) -> S:
        """
        Return the shared instance, constructing it on first access.

        Raises:
            SingletonConstructionError: If ``cls()`` raised, or if the
                constructor asked for its own instance. Not cached; the next
                call retries.
            SingletonDisposedError: If disposed before it was ever constructed.
            TypeError: If called on LazySingleton itself.
        """
        return cls._get_cell().get()

    @classmethod
    def instance_or_none(cls: Type[S]) -> Optional[S]:
        """Return the shared instance if it has been built, without building it."""
        return cls._get_cell().get_if_created()

    @classmethod
    def dispose(cls) -> None:
        """Release the shared instance. Idempotent; raises only when called on the base class."""
        cls._get_cell().dispose()

    @classmethod
    def state(cls) -> SingletonState:
        return cls._get_cell().state

    @classmethod
    def is_constructed(cls) -> bool:
        return cls._get_cell().is_value_created
