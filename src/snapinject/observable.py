"""Observable values — state that tracks its readers.

When an observable is read inside a Computed or Reaction evaluation, the
dependency is registered automatically. When it changes, every dependent is
scheduled for re-evaluation (deferred until the batch ends, inside an action).

Container types mirror the shapes a model may hold:

- ObservableList: ordered sequence
- ObservableDict: plain keyed mapping
- ObservableMap: key-ordered map, replaced wholesale when a snapshot is patched
"""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

from snapinject._tracking import check_mutation, current_derivation, schedule

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")


class Atom:
    """A bare change signal: something readers can depend on.

    Observable containers are built on top of this; it is also used directly
    for state that lives outside an observable value (a model's field set,
    an injector's cache).
    """

    __slots__ = ("_observers", "name")

    def __init__(self, name: str = "Atom") -> None:
        self.name = name
        self._observers: set = set()

    def report_observed(self) -> None:
        """Register the current derivation as an observer."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._observers.add(derivation)
            derivation._dependencies.add(self)

    def report_changed(self) -> None:
        """Schedule every observer for re-evaluation."""
        for observer in list(self._observers):
            schedule(observer)

    def _remove_observer(self, observer) -> None:
        self._observers.discard(observer)

    @property
    def observed(self) -> bool:
        return bool(self._observers)

    def __repr__(self) -> str:
        return f"Atom({self.name})"


class Observable(Atom, Generic[T]):
    """A single observable value with automatic dependency tracking."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        super().__init__("Observable")
        self._value = value

    def get(self) -> T:
        """Read the value. If inside a derivation, registers the dependency."""
        self.report_observed()
        return self._value

    def set(self, value: T) -> None:
        """Write a new value. Equal writes are ignored."""
        old = self._value
        if old is value or old == value:
            return
        check_mutation(self)
        self._value = value
        self.report_changed()

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"


class ObservableList(Atom, Generic[T]):
    """An observable list that tracks reads and notifies on mutation.

    Any read operation (iteration, indexing, len) registers a dependency.
    Any mutation (append, extend, __setitem__, etc.) notifies observers.
    """

    __slots__ = ("_items",)

    def __init__(self, items=None) -> None:
        super().__init__("ObservableList")
        self._items: list[T] = [observable(item) for item in items] if items else []

    def _mutate(self) -> list[T]:
        check_mutation(self)
        return self._items

    # --- Read operations (track) ---

    def __getitem__(self, index):
        self.report_observed()
        return self._items[index]

    def __len__(self) -> int:
        self.report_observed()
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        self.report_observed()
        return iter(list(self._items))

    def __contains__(self, item) -> bool:
        self.report_observed()
        return item in self._items

    def __bool__(self) -> bool:
        self.report_observed()
        return bool(self._items)

    # --- Write operations (notify) ---

    def append(self, item: T) -> None:
        self._mutate().append(observable(item))
        self.report_changed()

    def extend(self, items) -> None:
        self._mutate().extend(observable(item) for item in items)
        self.report_changed()

    def insert(self, index: int, item: T) -> None:
        self._mutate().insert(index, observable(item))
        self.report_changed()

    def pop(self, index: int = -1) -> T:
        result = self._mutate().pop(index)
        self.report_changed()
        return result

    def remove(self, item: T) -> None:
        self._mutate().remove(item)
        self.report_changed()

    def clear(self) -> None:
        self._mutate().clear()
        self.report_changed()

    def truncate(self, length: int) -> None:
        """Drop every item from index ``length`` onward."""
        if length >= len(self._items):
            return
        del self._mutate()[length:]
        self.report_changed()

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            value = [observable(item) for item in value]
        else:
            value = observable(value)
        self._mutate()[index] = value
        self.report_changed()

    def __delitem__(self, index) -> None:
        del self._mutate()[index]
        self.report_changed()

    def __repr__(self) -> str:
        return f"ObservableList({self._items!r})"


class ObservableDict(Atom, Generic[KT, VT]):
    """An observable dict that tracks reads and notifies on mutation."""

    __slots__ = ("_data",)

    def __init__(self, data=None) -> None:
        super().__init__(type(self).__name__)
        self._data: dict[KT, VT] = (
            {key: observable(value) for key, value in dict(data).items()} if data else {}
        )

    def _mutate(self) -> dict[KT, VT]:
        check_mutation(self)
        return self._data

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        self.report_observed()
        return self._data[key]

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        self.report_observed()
        return self._data.get(key, default)

    def __contains__(self, key) -> bool:
        self.report_observed()
        return key in self._data

    def __len__(self) -> int:
        self.report_observed()
        return len(self._data)

    def __iter__(self) -> Iterator[KT]:
        self.report_observed()
        return iter(list(self._data))

    def keys(self):
        self.report_observed()
        return self._data.keys()

    def values(self):
        self.report_observed()
        return self._data.values()

    def items(self):
        self.report_observed()
        return self._data.items()

    def __bool__(self) -> bool:
        self.report_observed()
        return bool(self._data)

    # --- Write operations (notify) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        if key in self._data:
            old = self._data[key]
            if old is value:
                return
        self._mutate()[key] = observable(value)
        self.report_changed()

    def __delitem__(self, key: KT) -> None:
        del self._mutate()[key]
        self.report_changed()

    def pop(self, key: KT, *args) -> VT:
        result = self._mutate().pop(key, *args)
        self.report_changed()
        return result

    def update(self, other=None, **kwargs) -> None:
        data = self._mutate()
        for key, value in dict(other or (), **kwargs).items():
            data[key] = observable(value)
        self.report_changed()

    def clear(self) -> None:
        self._mutate().clear()
        self.report_changed()

    def setdefault(self, key: KT, default: VT | None = None) -> VT:
        if key not in self._data:
            self._mutate()[key] = observable(default)
            self.report_changed()
        return self._data[key]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


class ObservableMap(ObservableDict[KT, VT]):
    """A key-ordered observable map.

    Behaves like ObservableDict. The separate type tells the snapshot engine
    to replace the whole content on patch instead of merging key by key.
    """

    __slots__ = ()

    def set(self, key: KT, value: VT) -> None:
        self[key] = value


def observable(value):
    """Deep-convert plain containers into their observable counterparts.

    Lists and tuples become ObservableList, dicts become ObservableDict.
    Values that are already observable, and anything else, are returned as-is.
    """
    if isinstance(value, Atom):
        return value
    if isinstance(value, (list, tuple)):
        return ObservableList(observable(item) for item in value)
    if isinstance(value, dict):
        return ObservableDict({key: observable(item) for key, item in value.items()})
    return value
