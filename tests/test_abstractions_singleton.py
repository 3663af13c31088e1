"""
Tests for src/abstractions/lazy.py and src/abstractions/singleton.py

**Coverage**:
  - Exactly-once construction under thread contention
  - Per-subclass isolation
  - Construction failures (wrapped, not cached)
  - Disposal: idempotent, close() once, failures logged and suppressed
  - Access after disposal
  - Re-entrant access from a constructor
  - Misuse of the LazySingleton base class
"""

import threading

import pytest
from structlog.testing import capture_logs

from src.abstractions.lazy import LazyCell, SingletonState
from src.abstractions.singleton import LazySingleton
from src.utils.errors import SingletonConstructionError, SingletonDisposedError


# ============================================================================
# Construction
# ============================================================================

def test_instance_returns_same_object():
    """Repeated access returns the one shared instance."""
    class Registry(LazySingleton):
        pass

    first = Registry.instance()

    assert isinstance(first, Registry)
    assert Registry.instance() is first
    assert Registry.state() == SingletonState.CONSTRUCTED
    assert Registry.is_constructed()


def test_instance_is_lazy():
    """Nothing is built until instance() is called."""
    calls = []

    class Lookup(LazySingleton):
        def __init__(self):
            calls.append(1)

    assert calls == []
    assert Lookup.state() == SingletonState.UNINITIALIZED
    assert Lookup.instance_or_none() is None

    Lookup.instance()

    assert calls == [1]


def test_concurrent_first_access_constructs_once():
    """Many threads racing on first access trigger one constructor call."""
    thread_count = 32
    constructed = []
    barrier = threading.Barrier(thread_count)
    results = [None] * thread_count

    class Expensive(LazySingleton):
        def __init__(self):
            constructed.append(threading.get_ident())
            # Widen the race window while other threads are waiting
            threading.Event().wait(0.05)

    def worker(slot):
        barrier.wait()
        results[slot] = Expensive.instance()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(thread_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(constructed) == 1
    assert all(r is results[0] for r in results)
    assert results[0] is not None


def test_subclasses_have_separate_instances():
    """Each subclass, including subclasses of subclasses, owns its own slot."""
    class Parent(LazySingleton):
        pass

    class Child(Parent):
        pass

    parent = Parent.instance()
    child = Child.instance()

    assert type(parent) is Parent
    assert type(child) is Child
    assert parent is not child

    Child.dispose()
    assert Parent.state() == SingletonState.CONSTRUCTED


# ============================================================================
# Construction failures
# ============================================================================

def test_construction_failure_is_wrapped_and_chained():
    """The constructor's exception reaches the caller as the cause."""
    class Broken(LazySingleton):
        def __init__(self):
            raise OSError("disk not mounted")

    with pytest.raises(SingletonConstructionError) as excinfo:
        Broken.instance()

    assert isinstance(excinfo.value.__cause__, OSError)
    assert "disk not mounted" in str(excinfo.value)
    assert Broken.state() == SingletonState.UNINITIALIZED


def test_construction_failure_is_not_cached():
    """A later call retries and can succeed."""
    attempts = []

    class Flaky(LazySingleton):
        def __init__(self):
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("first attempt fails")

    with pytest.raises(SingletonConstructionError):
        Flaky.instance()

    instance = Flaky.instance()

    assert isinstance(instance, Flaky)
    assert len(attempts) == 2
    assert Flaky.instance() is instance


def test_reentrant_instance_raises_instead_of_deadlocking():
    """A constructor asking for its own instance fails fast and caches nothing."""
    errors = []

    class SelfReferencing(LazySingleton):
        def __init__(self):
            SelfReferencing.instance()

    def worker():
        try:
            SelfReferencing.instance()
        except SingletonConstructionError as exc:
            errors.append(exc)

    thread = threading.Thread(target=worker, daemon=True)
    thread.start()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert len(errors) == 1
    assert isinstance(errors[0].__cause__, SingletonConstructionError)
    assert SelfReferencing.state() == SingletonState.UNINITIALIZED
    assert SelfReferencing.instance_or_none() is None


def test_reentrant_dispose_is_skipped_with_warning():
    """dispose() from inside the constructor logs and leaves the cell alone."""
    class DisposesItself(LazySingleton):
        def __init__(self):
            DisposesItself.dispose()

    with capture_logs() as logs:
        instance = DisposesItself.instance()

    assert DisposesItself.state() == SingletonState.CONSTRUCTED
    assert DisposesItself.instance() is instance
    assert {
        "event": "singleton_dispose_during_construction",
        "name": DisposesItself.__qualname__,
        "log_level": "warning",
    } in logs


# ============================================================================
# Base class
# ============================================================================

def test_base_class_has_no_instance():
    """LazySingleton itself cannot be used as a singleton."""
    with pytest.raises(TypeError):
        LazySingleton.instance()
    with pytest.raises(TypeError):
        LazySingleton.dispose()
    with pytest.raises(TypeError):
        LazySingleton.state()


# ============================================================================
# Disposal
# ============================================================================

def test_dispose_calls_close_once():
    """close() runs on the first dispose only."""
    class Pool(LazySingleton):
        def __init__(self):
            self.close_calls = 0

        def close(self):
            self.close_calls += 1

    pool = Pool.instance()

    Pool.dispose()
    Pool.dispose()

    assert pool.close_calls == 1
    assert Pool.state() == SingletonState.DISPOSED


def test_dispose_without_close_is_fine():
    """Instances without close() are simply released."""
    class Plain(LazySingleton):
        pass

    Plain.instance()
    Plain.dispose()

    assert Plain.state() == SingletonState.DISPOSED


def test_dispose_before_construction_does_not_construct():
    """Disposing an unbuilt singleton never runs its constructor."""
    calls = []

    class NeverBuilt(LazySingleton):
        def __init__(self):
            calls.append(1)

    NeverBuilt.dispose()

    assert calls == []
    assert NeverBuilt.state() == SingletonState.DISPOSED
    with pytest.raises(SingletonDisposedError):
        NeverBuilt.instance()
    assert calls == []


def test_dispose_suppresses_and_logs_cleanup_failure():
    """A failing close() is logged as a warning and never raised."""
    class Leaky(LazySingleton):
        def close(self):
            raise ValueError("handle already closed")

    Leaky.instance()

    with capture_logs() as logs:
        Leaky.dispose()

    failures = [entry for entry in logs if entry["event"] == "singleton_cleanup_failed"]
    assert len(failures) == 1
    assert failures[0]["log_level"] == "warning"
    assert failures[0]["error_type"] == "ValueError"
    assert "handle already closed" in failures[0]["error"]
    assert Leaky.state() == SingletonState.DISPOSED


def test_instance_after_dispose_returns_released_instance():
    """Access after disposal returns the held instance and never rebuilds."""
    calls = []

    class Cache(LazySingleton):
        def __init__(self):
            calls.append(1)

    original = Cache.instance()
    Cache.dispose()

    assert Cache.instance() is original
    assert Cache.instance_or_none() is original
    assert calls == [1]


def test_concurrent_dispose_closes_once():
    """Racing dispose() calls still close exactly once."""
    thread_count = 16
    barrier = threading.Barrier(thread_count)
    closes = []

    class Shared(LazySingleton):
        def close(self):
            closes.append(1)

    Shared.instance()

    def worker():
        barrier.wait()
        Shared.dispose()

    threads = [threading.Thread(target=worker) for _ in range(thread_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert closes == [1]


# ============================================================================
# LazyCell on its own
# ============================================================================

def test_lazy_cell_runs_factory_once():
    """get() caches the factory result."""
    calls = []

    def factory():
        calls.append(1)
        return {"loaded": True}

    cell = LazyCell(factory)

    assert not cell.is_value_created
    value = cell.get()

    assert cell.get() is value
    assert calls == [1]
    assert cell.is_value_created
    assert cell.name.endswith("factory")


def test_lazy_cell_caches_none_value():
    """A factory returning None still runs only once."""
    calls = []

    def factory():
        calls.append(1)
        return None

    cell = LazyCell(factory, name="nothing")

    assert cell.get() is None
    assert cell.get() is None
    assert calls == [1]
    assert cell.state == SingletonState.CONSTRUCTED


def test_lazy_cell_dispose_closes_value():
    """Cells dispose of any value exposing close()."""
    class Handle:
        closed = False

        def close(self):
            self.closed = True

    cell = LazyCell(Handle)
    handle = cell.get()
    cell.dispose()

    assert handle.closed
    assert cell.get() is handle
