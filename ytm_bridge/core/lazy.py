"""
At-most-once lazy initialisation shared across call sites.

A LazyValue wraps a factory and runs it the first time the value is
requested. The result (or the exception) is stored in a single-assignment
concurrent.futures.Future, so every later caller observes the same outcome
without re-running the factory.

Usage:
    _config = LazyValue(load_config, name="config")

    def get_config() -> Config:
        return _config.get()
"""

import threading
from concurrent.futures import Future
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class LazyValue(Generic[T]):
    """
    Single-assignment lazily computed value.

    The first call to get() creates the Future under a lock (check-then-set)
    and resolves it by running the factory outside of the lock. Concurrent
    callers that arrive while the factory runs block on the same Future.

    Attributes:
        name: Label used in repr() and log messages.
    """

    def __init__(self, factory: Callable[[], T], name: str = "") -> None:
        self._factory = factory
        self.name = name
        self._future: Future | None = None
        self._lock = threading.Lock()

    def get(self) -> T:
        """
        Return the value, running the factory on first access.

        Raises:
            Whatever the factory raised on its first (and only) run.
        """
        owner = False
        with self._lock:
            if self._future is None:
                self._future = Future()
                owner = True
            future = self._future

        if owner:
            try:
                future.set_result(self._factory())
            except BaseException as e:
                future.set_exception(e)

        return future.result()

    @property
    def is_loaded(self) -> bool:
        """True once the factory has finished (successfully or not)."""
        future = self._future
        return future is not None and future.done()

    def reset(self) -> None:
        """
        Forget the stored value so the next get() runs the factory again.

        Intended for tests only.
        """
        with self._lock:
            self._future = None

    def __repr__(self) -> str:
        state = "loaded" if self.is_loaded else "pending"
        return f"LazyValue({self.name or self._factory!r}, {state})"
