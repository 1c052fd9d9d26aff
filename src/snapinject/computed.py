"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a function. When evaluated, it tracks which observables
the function reads and caches the result. When any dependency changes,
the cached value is invalidated and the change propagates to the Computed's
own observers. On next read, it re-evaluates.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from snapinject._tracking import current_derivation
from snapinject.observable import Atom

T = TypeVar("T")

_UNSET = object()


class Computed(Atom, Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_fn", "_dependencies", "_value", "_dirty")

    def __init__(self, fn: Callable[[], T]) -> None:
        super().__init__(getattr(fn, "__name__", "Computed"))
        self._fn = fn
        self._dependencies: set = set()
        self._value = _UNSET
        self._dirty = True

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        self.report_observed()
        if self._dirty:
            self._recompute()
        return self._value

    def _clear_dependencies(self) -> None:
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

    def _recompute(self) -> None:
        self._clear_dependencies()
        token = current_derivation.set(self)
        try:
            self._value = self._fn()
        finally:
            current_derivation.reset(token)
        self._dirty = False

    def _run(self) -> None:
        """Called by the scheduler when a dependency changed.

        Marks dirty and propagates to observers; recomputation waits for
        the next .get().
        """
        if not self._dirty:
            self._dirty = True
            self.report_changed()

    def dispose(self) -> None:
        """Disconnect from all dependencies. The computed becomes inert."""
        self._clear_dependencies()
        self._observers.clear()
        self._dirty = True
        self._value = _UNSET

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        return f"Computed({self.name}, {state})"


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        counter = Observable(0)

        @computed
        def doubled():
            return counter.get() * 2

        doubled.get()  # 0
        counter.set(5)
        doubled.get()  # 10
    """
    return Computed(fn)
