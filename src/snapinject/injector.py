"""Injector — the instance cache behind every resolution.

Instances are keyed by (stable name, scope). The first get() for a key
constructs, every later one returns the cached object. dump() and load()
expose the cached instances as a name -> instance graph for the snapshot
engine.

The ambient "current injector" is held in a contextvar. Every public API
also accepts an explicit injector, which is the way to get isolation.
"""

from __future__ import annotations

import contextvars
import logging
import weakref
from collections.abc import Mapping, MutableMapping
from contextlib import contextmanager
from typing import Any, Iterator, TypeVar

from snapinject.action import transaction
from snapinject.meta import Scope
from snapinject.model import Model, model_fields
from snapinject.observable import Atom, ObservableDict

logger = logging.getLogger("snapinject.injector")

T = TypeVar("T")

RawStateGraph = dict[str, Any]


class Injector:
    """Cache of resolved instances keyed by (name, scope).

    A name belongs to one scope at a time, so dump() can key by name alone.
    """

    def __init__(self) -> None:
        self._instances: dict[tuple[str, Scope], Any] = {}
        self._atom = Atom("Injector.instances")
        self._owners: weakref.WeakKeyDictionary[Any, set[str]] = weakref.WeakKeyDictionary()
        # owners that cannot be weakly referenced (ints, slotted classes)
        self._pinned_owners: dict[Any, set[str]] = {}

    @classmethod
    def new_instance(cls) -> Injector:
        """A fresh injector with an empty cache."""
        return cls()

    def get(
        self,
        cls: type[T],
        args: tuple = (),
        kwargs: Mapping[str, Any] | None = None,
        *,
        scope: Scope = Scope.SINGLETON,
        name: str | None = None,
    ) -> T:
        """Return the cached instance for (name, scope), constructing it once.

        ``args`` and ``kwargs`` go to the constructor untouched, so they may
        use any names, ``scope`` and ``name`` included. The constructor runs
        inside a transaction. Constructor errors propagate unchanged; nothing
        is cached then.

        Raises ValueError if name is already cached under another scope.
        """
        name = name or cls.__name__
        key = (name, scope)
        try:
            return self._instances[key]
        except KeyError:
            pass
        for cached_name, cached_scope in self._instances:
            if cached_name == name:
                raise ValueError(
                    f"{name!r} is already cached as {cached_scope.value}, "
                    f"cannot cache it again as {scope.value}"
                )
        logger.debug("Constructing %s (%s)", name, scope.value)
        with transaction():
            instance = cls(*args, **(kwargs or {}))
        self._instances[key] = instance
        self._atom.report_changed()
        return instance

    def has(self, name: str, scope: Scope = Scope.SINGLETON) -> bool:
        return (name, scope) in self._instances

    def evict(self, name: str, scope: Scope = Scope.SINGLETON) -> Any:
        """Drop the cached instance for (name, scope) and return it, or None."""
        instance = self._instances.pop((name, scope), None)
        if instance is not None:
            logger.debug("Evicted %s (%s)", name, scope.value)
            self._atom.report_changed()
        return instance

    def _owner_table(self, owner: Any) -> MutableMapping[Any, set[str]]:
        try:
            weakref.ref(owner)
        except TypeError:
            return self._pinned_owners
        return self._owners

    def bind_owner(self, owner: Any, name: str) -> None:
        """Record that owner requested the per-owner instance called name.

        Owners are held weakly when they support it. Others (ints, classes
        with ``__slots__`` and no ``__weakref__``) are held until released.
        """
        self._owner_table(owner).setdefault(owner, set()).add(name)

    def release_owner(self, owner: Any) -> list[Any]:
        """Evict the per-owner instances bound to owner and return them.

        An instance still bound to another owner stays cached.
        """
        evicted = []
        for name in sorted(self._owner_table(owner).pop(owner, ())):
            if any(name in names for names in self._bound_names()):
                continue
            instance = self.evict(name, Scope.PER_OWNER)
            if instance is not None:
                evicted.append(instance)
        return evicted

    def _bound_names(self) -> Iterator[set[str]]:
        yield from self._owners.values()
        yield from self._pinned_owners.values()

    def dump(self) -> RawStateGraph:
        """Map every cached instance's stable name to the live instance.

        The returned dict is new; the instances in it are not copies.
        """
        self._atom.report_observed()
        return {name: instance for (name, _scope), instance in self._instances.items()}

    def load(self, graph: RawStateGraph) -> None:
        """Write graph's field values into the cached instances, in one batch.

        Names without a cached instance are ignored; load never constructs.
        """
        targets = self.dump()
        with transaction():
            for name, state in graph.items():
                instance = targets.get(name)
                if instance is None or instance is state:
                    continue
                _assign_fields(instance, state)

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[tuple[str, Scope]]:
        return iter(list(self._instances))

    def __repr__(self) -> str:
        names = ", ".join(name for name, _scope in self._instances)
        return f"Injector([{names}])"


def _assign_fields(instance: Any, state: Any) -> None:
    if isinstance(state, (Mapping, ObservableDict)):
        items = list(state.items())
    else:
        items = _public_attrs(state)
    for field, value in items:
        setattr(instance, field, value)


def _public_attrs(obj: Any):
    if isinstance(obj, Model):
        return [(name, getattr(obj, name)) for name in model_fields(obj)]
    return [(name, value) for name, value in vars(obj).items() if not name.startswith("_")]


_current: contextvars.ContextVar[Injector | None] = contextvars.ContextVar(
    "current_injector", default=None
)


def resolve_injector(injector: Injector | None) -> Injector:
    return injector if injector is not None else get_injector()


def get_injector() -> Injector:
    """The ambient injector, created on first use."""
    injector = _current.get()
    if injector is None:
        injector = Injector.new_instance()
        _current.set(injector)
    return injector


def set_injector(injector: Injector) -> contextvars.Token:
    """Replace the ambient injector. Returns a token for _current.reset()."""
    return _current.set(injector)


@contextmanager
def use_injector(injector: Injector):
    """Make injector the ambient one for the duration of the block."""
    token = _current.set(injector)
    try:
        yield injector
    finally:
        _current.reset(token)
