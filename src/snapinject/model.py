"""Models — classes whose public attributes are observable fields.

    @store
    class Counter(Model):
        count = 0

        @action
        def increment(self):
            self.count += 1

Public class-body values are per-instance defaults (deep-copied, so a list
default is never shared). Lists and dicts assigned to a field are converted
to ObservableList / ObservableDict. Names starting with an underscore,
methods and properties are left alone.
"""

from __future__ import annotations

import copy
from typing import Callable, TypeVar

from snapinject._tracking import check_mutation
from snapinject.meta import ModelKind, register_model
from snapinject.observable import Atom, Observable, observable

C = TypeVar("C", bound=type)
F = TypeVar("F", bound=Callable)

_FIELDS = "_model_fields"
_SHAPE = "_model_shape"
POST_CONSTRUCT_ATTR = "__snapinject_post_construct__"


def _is_field_default(name: str, value: object) -> bool:
    if name.startswith("_") or isinstance(value, type):
        return False
    # functions, properties and other descriptors belong to the class
    return not hasattr(type(value), "__get__")


class Model:
    """Base class for state containers resolved by the injector."""

    _field_defaults: dict[str, object] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        defaults = dict(getattr(cls, "_field_defaults", {}))
        for name, value in list(vars(cls).items()):
            if _is_field_default(name, value):
                defaults[name] = value
                delattr(cls, name)
        cls._field_defaults = defaults

    def __new__(cls, *args, **kwargs):
        self = super().__new__(cls)
        fields = {
            name: Observable(observable(copy.deepcopy(value)))
            for name, value in cls._field_defaults.items()
        }
        object.__setattr__(self, _FIELDS, fields)
        object.__setattr__(self, _SHAPE, Atom(f"{cls.__name__}.fields"))
        return self

    def __getattr__(self, name: str):
        # Only reached when normal lookup fails, i.e. for fields.
        if not name.startswith("_"):
            fields = self.__dict__[_FIELDS]
            if name in fields:
                return fields[name].get()
            self.__dict__[_SHAPE].report_observed()
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
            return
        fields = self.__dict__[_FIELDS]
        value = observable(value)
        field = fields.get(name)
        if field is None:
            fields[name] = Observable(value)
            self.__dict__[_SHAPE].report_changed()
        else:
            field.set(value)

    def __delattr__(self, name: str) -> None:
        fields = self.__dict__[_FIELDS]
        if name not in fields:
            object.__delattr__(self, name)
            return
        check_mutation(self)
        field = fields.pop(name)
        field.report_changed()
        self.__dict__[_SHAPE].report_changed()

    def __repr__(self) -> str:
        fields = self.__dict__[_FIELDS]
        body = ", ".join(f"{name}={field._value!r}" for name, field in fields.items())
        return f"{type(self).__name__}({body})"


def model_fields(instance: Model) -> list[str]:
    """Field names of instance, in definition order. Tracked."""
    instance.__dict__[_SHAPE].report_observed()
    return list(instance.__dict__[_FIELDS])


def _marker(kind: ModelKind, arg):
    if isinstance(arg, type):
        register_model(arg, kind)
        return arg

    def decorate(cls: C) -> C:
        register_model(cls, kind, arg)
        return cls

    return decorate


def store(arg=None):
    """Mark a class as a process-wide singleton.

    Use bare (``@store``), or with an explicit stable name
    (``@store("Counter")``). Without one, the class name is used.
    """
    return _marker(ModelKind.STORE, arg)


def view_model(arg=None):
    """Mark a class as scoped to the owner that requests it."""
    return _marker(ModelKind.VIEW_MODEL, arg)


def post_construct(method: F) -> F:
    """Mark a method to run once, right after the container constructs the instance."""
    setattr(method, POST_CONSTRUCT_ATTR, True)
    return method
