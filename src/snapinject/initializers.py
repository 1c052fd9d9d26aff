"""Scope initializers — construction strategies for stores and view-models.

Both go through Injector.get so an instance is constructed at most once per
key. Methods marked @post_construct run right after that construction,
inside a transaction like the constructor itself.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from snapinject.action import transaction
from snapinject.injector import Injector, resolve_injector
from snapinject.meta import Scope, stable_name
from snapinject.model import POST_CONSTRUCT_ATTR

logger = logging.getLogger("snapinject.initializers")

T = TypeVar("T")


def _resolve(
    injector: Injector, cls: type[T], scope: Scope, args: tuple, kwargs: Mapping[str, Any] | None
) -> T:
    name = stable_name(cls)
    if injector.has(name, scope):
        return injector.get(cls, scope=scope, name=name)
    instance = injector.get(cls, args, kwargs, scope=scope, name=name)
    with transaction():
        run_post_construct(instance)
    return instance


def run_post_construct(instance: Any) -> None:
    """Call every @post_construct method of instance, in name order."""
    cls = type(instance)
    for attr in dir(cls):
        method = getattr(cls, attr, None)
        if callable(method) and getattr(method, POST_CONSTRUCT_ATTR, False):
            getattr(instance, attr)()


def initialize_store(
    injector: Injector,
    cls: type[T],
    args: tuple = (),
    kwargs: Mapping[str, Any] | None = None,
) -> T:
    """Resolve cls as a singleton store."""
    return _resolve(injector, cls, Scope.SINGLETON, args, kwargs)


def initialize_view_model(
    injector: Injector,
    cls: type[T],
    args: tuple = (),
    kwargs: Mapping[str, Any] | None = None,
    *,
    owner: Any = None,
) -> T:
    """Resolve cls as a per-owner view-model and bind it to owner.

    The binding only tells release_owner() what to evict.
    """
    instance = _resolve(injector, cls, Scope.PER_OWNER, args, kwargs)
    if owner is not None:
        injector.bind_owner(owner, stable_name(cls))
    return instance


def release_owner(owner: Any, injector: Injector | None = None) -> list[Any]:
    """Evict the view-models bound to owner. Returns the evicted instances.

    Teardown beyond cache eviction is up to the owner.
    """
    evicted = resolve_injector(injector).release_owner(owner)
    logger.debug("Released %d view-model(s) of %r", len(evicted), owner)
    return evicted
