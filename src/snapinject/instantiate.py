"""Instantiation entry point — dispatch on a class's model kind."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from snapinject.initializers import initialize_store, initialize_view_model
from snapinject.injector import Injector, resolve_injector
from snapinject.meta import ModelKind, Scope, assign_stable_name, get_meta

logger = logging.getLogger("snapinject.instantiate")

T = TypeVar("T")


def instantiate(
    cls: type[T],
    args: tuple = (),
    kwargs: Mapping[str, Any] | None = None,
    *,
    owner: Any = None,
    injector: Injector | None = None,
) -> T:
    """Resolve an instance of cls through the injector.

    Stores are singletons, view-models are bound to ``owner``. Any other
    class is memoized as a singleton under a generated stable name, assigned
    the first time it is resolved. ``args`` and ``kwargs`` reach the
    constructor only when the instance is first built:

        instantiate(Config, ("prod",), {"owner": "ops"})
    """
    injector = resolve_injector(injector)
    match get_meta(cls).kind:
        case ModelKind.STORE:
            return initialize_store(injector, cls, args, kwargs)
        case ModelKind.VIEW_MODEL:
            return initialize_view_model(injector, cls, args, kwargs, owner=owner)
        case ModelKind.UNCLASSIFIED:
            name = assign_stable_name(cls)
            return injector.get(cls, args, kwargs, scope=Scope.SINGLETON, name=name)


class inject(Generic[T]):
    """Class attribute that resolves a dependency on first access.

        class TodoView:
            todos = inject(TodoStore)
            form = inject(TodoForm)  # view-model, owned by this TodoView

    The resolved instance is cached on the owning instance. Pass
    ``injector=`` to resolve from a specific injector instead of the ambient one.
    """

    def __init__(
        self,
        cls: type[T],
        args: tuple = (),
        kwargs: Mapping[str, Any] | None = None,
        *,
        injector: Injector | None = None,
    ) -> None:
        self.cls = cls
        self.args = args
        self.kwargs = kwargs
        self.injector = injector
        self.attr = cls.__name__

    def __set_name__(self, owner: type, name: str) -> None:
        self.attr = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        cache = instance.__dict__.setdefault("_injected", {})
        try:
            return cache[self.attr]
        except KeyError:
            pass
        value = instantiate(
            self.cls, self.args, self.kwargs, owner=instance, injector=self.injector
        )
        cache[self.attr] = value
        logger.debug("Injected %s into %s.%s", self.cls.__name__, type(instance).__name__, self.attr)
        return value

    def __repr__(self) -> str:
        return f"inject({self.cls.__name__})"
