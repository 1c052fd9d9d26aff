"""Reactions — side effects triggered by observable state changes.

Unlike Computed (which is lazy and only evaluates on read), a Reaction
eagerly re-runs its side effect whenever its tracked dependencies change.

Two flavors:
- autorun(fn): runs fn immediately, re-runs when any observable it read changes.
- reaction(data_fn, effect_fn): tracks data_fn, calls effect_fn with the new value
  only when data_fn's result changes under the given equality.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from snapinject import comparer
from snapinject._tracking import current_derivation

T = TypeVar("T")


class Reaction:
    """A reactive side effect that re-runs when its dependencies change.

    Reactions run eagerly (unlike Computed which is lazy).
    """

    __slots__ = ("_fn", "_dependencies", "_disposed", "__weakref__")

    def __init__(self, fn: Callable[[], None]) -> None:
        self._fn = fn
        self._dependencies: set = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _clear_dependencies(self) -> None:
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

    def _track(self, fn: Callable[[], T]) -> T:
        """Evaluate fn with this reaction as the current derivation."""
        self._clear_dependencies()
        token = current_derivation.set(self)
        try:
            return fn()
        finally:
            current_derivation.reset(token)

    def _run(self) -> None:
        if self._disposed:
            return
        self._track(self._fn)

    def dispose(self) -> None:
        """Stop this reaction. Disconnects from all dependencies."""
        self._disposed = True
        self._clear_dependencies()

    def __call__(self) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        name = getattr(self._fn, "__name__", "reaction")
        return f"{type(self).__name__}({name}, {state})"


class _DataReaction(Reaction):
    """Internal: reaction(data_fn, effect_fn) implementation.

    Tracks data_fn's dependencies. When they change, re-runs data_fn.
    If the result differs from last time under ``equals``, calls effect_fn
    with the new value.
    """

    __slots__ = ("_effect_fn", "_equals", "_last_value", "_initialized")

    def __init__(self, data_fn: Callable, effect_fn: Callable, equals: Callable) -> None:
        super().__init__(data_fn)
        self._effect_fn = effect_fn
        self._equals = equals
        self._last_value = None
        self._initialized = False

    def _run(self) -> None:
        if self._disposed:
            return
        new_value = self._track(self._fn)
        if self._initialized and self._equals(self._last_value, new_value):
            return
        self._last_value = new_value
        self._initialized = True
        self._effect_fn(new_value)


def autorun(fn: Callable[[], None]) -> Reaction:
    """Run fn immediately, then re-run whenever any observable it reads changes.

    Returns the Reaction (call .dispose() to stop).

    Usage:
        counter = Observable(0)
        log = []

        handle = autorun(lambda: log.append(counter.get()))
        # log == [0] — ran immediately

        counter.set(1)
        # log == [0, 1]

        handle.dispose()
        counter.set(2)
        # log == [0, 1] — stopped
    """
    r = Reaction(fn)
    r._run()
    return r


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
    equals: Callable[[T, T], bool] | None = None,
) -> Reaction:
    """Track data_fn's observables; call effect_fn when the result changes.

    ``equals`` decides what counts as a change (default: identity or ``==``;
    pass comparer.structural to compare nested data by value).

    Returns the reaction (call .dispose(), or call it, to stop).

    Usage:
        first = Observable("Alice")
        last = Observable("Smith")

        effects = []
        r = reaction(
            lambda: f"{first.get()} {last.get()}",
            lambda name: effects.append(name),
        )
        # effects == [] — data_fn ran to establish deps, effect did not fire

        first.set("Bob")
        # effects == ["Bob Smith"]

        r.dispose()
    """
    r = _DataReaction(data_fn, effect_fn, equals or comparer.default)
    if fire_immediately:
        r._run()
    else:
        r._last_value = r._track(data_fn)
        r._initialized = True
    return r
