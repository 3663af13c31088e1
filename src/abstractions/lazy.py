"""
Once-initialized shared cell.

**Conceptual**: A LazyCell wraps a zero-argument factory and runs it at most
once, on first access, no matter how many threads ask for the value at the
same time. It is the building block behind ``LazySingleton`` and can be used
on its own for module-level shared objects:

    _client = LazyCell(create_client)

    def get_client() -> Client:
        return _client.get()

**Lifecycle**:
    UNINITIALIZED --get()--> CONSTRUCTED --dispose()--> DISPOSED
    UNINITIALIZED --dispose()--> DISPOSED

Nothing leaves DISPOSED. After disposal ``get()`` keeps returning the
(released) value that was held; a cell disposed before it was ever built
raises ``SingletonDisposedError``.

**Failure policy**: if the factory raises, the exception is wrapped in
``SingletonConstructionError`` and nothing is cached. The cell stays
UNINITIALIZED and the next ``get()`` runs the factory again. A factory that
asks its own cell for the value (directly or through a chain of calls on the
same thread) gets a ``SingletonConstructionError`` instead of a deadlock.
"""

import threading
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from src.utils.errors import SingletonConstructionError, SingletonDisposedError
from src.utils.log import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


class SingletonState(str, Enum):
    """Lifecycle state of a LazyCell (and of the singleton built on it)."""
    UNINITIALIZED = "UNINITIALIZED"
    CONSTRUCTED = "CONSTRUCTED"
    DISPOSED = "DISPOSED"


class LazyCell(Generic[T]):
    """
    Thread-safe, lazily constructed, disposable value holder.

    Args:
        factory: Zero-argument callable producing the value.
        name: Label used in log events and error messages
              (defaults to the factory's qualified name).
    """

    def __init__(self, factory: Callable[[], T], name: Optional[str] = None) -> None:
        self._factory = factory
        self._name = name or getattr(factory, "__qualname__", repr(factory))
        self._value: Optional[T] = None
        self._created = False
        self._state = SingletonState.UNINITIALIZED
        self._lock = threading.Lock()
        # Ident of the thread currently running the factory, if any
        self._constructing_thread: Optional[int] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> SingletonState:
        return self._state

    @property
    def is_value_created(self) -> bool:
        """True once the factory has produced a value (including after disposal)."""
        return self._created

    def get(self) -> T:
        """
        Return the value, running the factory on first access.

        Uses double-checked locking: the fast path reads the state without the
        lock; only callers that see UNINITIALIZED contend for it. The state is
        flipped to CONSTRUCTED after the value is stored, and both happen under
        the lock, so no thread can observe a half-built value.

        Raises:
            SingletonConstructionError: If the factory raised, or if it is
                called again from inside the factory on the same thread.
            SingletonDisposedError: If the cell was disposed before any value was built.
        """
        if self._state is SingletonState.CONSTRUCTED:
            return self._value

        if self._constructing_thread == threading.get_ident():
            raise SingletonConstructionError(
                f"Re-entrant construction of {self._name}: the factory asked for its own value"
            )

        with self._lock:
            if self._state is SingletonState.UNINITIALIZED:
                self._constructing_thread = threading.get_ident()
                try:
                    value = self._factory()
                except Exception as exc:
                    raise SingletonConstructionError(
                        f"Failed to construct {self._name}: {exc}"
                    ) from exc
                finally:
                    self._constructing_thread = None
                self._value = value
                self._created = True
                self._state = SingletonState.CONSTRUCTED
                logger.debug("singleton_constructed", name=self._name)
                return value

            if self._state is SingletonState.DISPOSED and not self.is_value_created:
                raise SingletonDisposedError(
                    f"{self._name} was disposed before it was ever constructed"
                )
            return self._value

    def get_if_created(self) -> Optional[T]:
        """Return the held value without constructing it (None if never built)."""
        return self._value

    def dispose(self) -> None:
        """
        Release the held value, calling its ``close()`` if it has one.

        Idempotent. Never constructs the value just to dispose of it. Errors
        raised by ``close()`` are logged as warnings and suppressed; disposal
        itself never raises. Called from inside the factory, it logs a warning
        and leaves the cell untouched.
        """
        if self._constructing_thread == threading.get_ident():
            logger.warning("singleton_dispose_during_construction", name=self._name)
            return

        with self._lock:
            if self._state is SingletonState.DISPOSED:
                return

            was_constructed = self._state is SingletonState.CONSTRUCTED
            self._state = SingletonState.DISPOSED

            if was_constructed:
                close = getattr(self._value, "close", None)
                if callable(close):
                    try:
                        close()
                    except Exception as exc:
                        logger.warning(
                            "singleton_cleanup_failed",
                            name=self._name,
                            error=str(exc),
                            error_type=type(exc).__name__,
                        )

            logger.debug("singleton_disposed", name=self._name, was_constructed=was_constructed)
