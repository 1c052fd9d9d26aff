"""Model registry — per-class metadata consulted by the container.

Every class the container resolves falls into one of three kinds. Store and
view-model classes are registered explicitly (see snapinject.model.store /
view_model); anything else is unclassified and gets a generated stable name
the first time it is resolved.
"""

from __future__ import annotations

import itertools
import logging
import weakref
from dataclasses import dataclass, replace
from enum import Enum

logger = logging.getLogger("snapinject.meta")


class ModelKind(Enum):
    STORE = "store"
    VIEW_MODEL = "view_model"
    UNCLASSIFIED = "unclassified"


class Scope(Enum):
    """How long a resolved instance lives in its injector."""

    SINGLETON = "singleton"
    PER_OWNER = "per_owner"


@dataclass(frozen=True)
class ModelMeta:
    kind: ModelKind
    name: str | None = None
    scope: Scope = Scope.SINGLETON


_UNCLASSIFIED = ModelMeta(ModelKind.UNCLASSIFIED)

_registry: weakref.WeakKeyDictionary[type, ModelMeta] = weakref.WeakKeyDictionary()

_uid = itertools.count()


def register_model(cls: type, kind: ModelKind, name: str | None = None) -> ModelMeta:
    """Record kind and stable name for cls. A class is registered at most once."""
    if cls in _registry:
        raise TypeError(f"{cls.__qualname__} is already registered as {_registry[cls].kind.value}")
    scope = Scope.PER_OWNER if kind is ModelKind.VIEW_MODEL else Scope.SINGLETON
    meta = ModelMeta(kind, name, scope)
    _registry[cls] = meta
    return meta


def get_meta(cls: type) -> ModelMeta:
    return _registry.get(cls, _UNCLASSIFIED)


def stable_name(cls: type) -> str:
    """The registered stable name, falling back to the class name."""
    return get_meta(cls).name or cls.__name__


def assign_stable_name(cls: type) -> str:
    """Give cls a generated ``<ClassName>_<uid>`` name, once.

    Later calls return the same name.
    """
    meta = get_meta(cls)
    if meta.name is not None:
        return meta.name
    name = f"{getattr(cls, '__name__', '')}_{next(_uid)}"
    _registry[cls] = replace(meta, name=name)
    logger.debug("Assigned stable name %s to %r", name, cls)
    return name
