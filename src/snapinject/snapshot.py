"""Snapshots — the injector's live state as plain data, and back.

get_snapshot() walks every cached instance into dicts, lists and scalars.
patch_snapshot() merges such a tree back into the live instances inside one
transaction:

- sequences are truncated to the patch's length, overlapping items merged
- mappings lose every key the patch does not name
- ObservableMap content is replaced wholesale
- anything else is replaced by the patch value

Top-level model names missing from a patch are left alone.

on_snapshot() subscribes to changes. While a patch is in flight the phase is
PATCHING and notifications are held back; once every reaction triggered by
the patch has run, the phase returns to DONE and each subscriber receives
the merged snapshot once.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable

from snapinject import comparer
from snapinject._tracking import after_reactions
from snapinject.action import transaction
from snapinject.computed import Computed
from snapinject.injector import Injector, RawStateGraph, resolve_injector
from snapinject.model import Model, model_fields
from snapinject.observable import ObservableDict, ObservableList, ObservableMap
from snapinject.reaction import reaction

logger = logging.getLogger("snapinject.snapshot")

Snapshot = dict[str, Any]

_MISSING = object()


class SnapshotPhase(Enum):
    PATCHING = "patching"
    DONE = "done"


_phase = SnapshotPhase.DONE

# listeners notified while PATCHING, with the latest snapshot each one missed
_deferred: dict[SnapshotListener, Any] = {}


def get_phase() -> SnapshotPhase:
    return _phase


# ─── Shapes ──────────────────────────────────────────────────────────────────


def _is_array(value) -> bool:
    return isinstance(value, (list, tuple, ObservableList))


def _is_map(value) -> bool:
    return isinstance(value, ObservableMap)


def _is_object(value) -> bool:
    return isinstance(value, (Mapping, ObservableDict, Model))


def _is_instance(value) -> bool:
    """A plain object resolved by the injector (an unclassified helper)."""
    if _is_object(value) or isinstance(value, (type, Enum)):
        return False
    return hasattr(value, "__dict__") and not callable(value)


def _entries(obj) -> list[tuple[Any, Any]]:
    if isinstance(obj, Model):
        return [(name, getattr(obj, name)) for name in model_fields(obj)]
    if isinstance(obj, (Mapping, ObservableDict)):
        return list(obj.items())
    return [(name, value) for name, value in vars(obj).items() if not name.startswith("_")]


def _lookup(obj, key):
    if isinstance(obj, (Mapping, ObservableDict)):
        return obj.get(key, _MISSING)
    return getattr(obj, key, _MISSING)


def _assign(obj, key, value) -> None:
    if isinstance(obj, (Mapping, ObservableDict)):
        obj[key] = value
    else:
        setattr(obj, key, value)


def _delete(obj, key) -> None:
    if isinstance(obj, (Mapping, ObservableDict)):
        del obj[key]
    else:
        delattr(obj, key)


# ─── Serialize ───────────────────────────────────────────────────────────────


def _serialize(value):
    if _is_array(value):
        # len() is read even for empty containers so that the caller's
        # derivation depends on the container's size.
        if not len(value):
            return []
        return [_serialize(item) for item in value]
    if _is_map(value):
        if not len(value):
            return {}
        return {key: _serialize(item) for key, item in value.items()}
    if _is_object(value) or _is_instance(value):
        return {key: _serialize(item) for key, item in _entries(value)}
    return value


def serialize(graph: RawStateGraph) -> Snapshot:
    """Walk a raw state graph (see Injector.dump) into plain data."""
    return {name: _serialize(instance) for name, instance in graph.items()}


def clone_snapshot(value):
    """Deep-copy plain data, following the same shape rules as serialization."""
    if _is_array(value):
        return [clone_snapshot(item) for item in value]
    if _is_object(value) or _is_map(value):
        return {key: clone_snapshot(item) for key, item in _entries(value)}
    return copy.deepcopy(value)


def _split_name(args: tuple) -> tuple[str | None, tuple]:
    if args and isinstance(args[0], str):
        return args[0], args[1:]
    return None, args


def _snapshot_of(injector: Injector, model_name: str | None):
    graph = injector.dump()
    if model_name is None:
        return serialize(graph)
    if model_name not in graph:
        return None
    return _serialize(graph[model_name])


def get_snapshot(*args, injector: Injector | None = None):
    """Plain-data snapshot of every cached instance, or of one model.

        get_snapshot()                  # whole ambient injector
        get_snapshot(injector)
        get_snapshot("Counter")         # one model, None if not cached
        get_snapshot("Counter", injector)
    """
    model_name, rest = _split_name(args)
    if rest:
        injector = rest[0]
    return _snapshot_of(resolve_injector(injector), model_name)


# ─── Patch ───────────────────────────────────────────────────────────────────


def _merge(live, patch):
    """Merge patch into live in place where the shapes allow it.

    Returns the value that should now sit where live was: live itself when
    it was merged into, otherwise the patch value.
    """
    if _is_array(live) and _is_array(patch) and not isinstance(live, tuple):
        if len(patch) < len(live):
            if isinstance(live, ObservableList):
                live.truncate(len(patch))
            else:
                del live[len(patch):]
        for index, item in enumerate(patch):
            if index < len(live):
                current = live[index]
                merged = _merge(current, item)
                if merged is not current:
                    live[index] = merged
            else:
                live.append(item)
        return live

    if _is_map(live) and _is_object(patch):
        live.clear()
        for key, item in _entries(patch):
            live[key] = item
        return live

    if (_is_object(live) or _is_instance(live)) and _is_object(patch):
        wanted = {key for key, _item in _entries(patch)}
        for key in [key for key, _item in _entries(live) if key not in wanted]:
            _delete(live, key)
        for key, item in _entries(patch):
            current = _lookup(live, key)
            merged = item if current is _MISSING else _merge(current, item)
            if merged is not current:
                _assign(live, key, merged)
        return live

    return patch


def _merge_graph(graph: RawStateGraph, patch: Snapshot) -> RawStateGraph:
    for name, state in patch.items():
        if name not in graph:
            logger.debug("Patch names %r, which has no instance; skipped", name)
            continue
        if not _is_object(state):
            logger.debug("Patch for %r is not a mapping; skipped", name)
            continue
        graph[name] = _merge(graph[name], state)
    return graph


def _finish_patch() -> None:
    global _phase
    _phase = SnapshotPhase.DONE
    logger.debug("Snapshot patch settled")
    failure = None
    while _deferred and _phase is SnapshotPhase.DONE:
        listener = next(iter(_deferred))
        snapshot = _deferred.pop(listener)
        try:
            listener.deliver(snapshot)
        except Exception as exc:
            # keep delivering; the first error is re-raised afterwards
            if failure is not None:
                logger.exception("Snapshot listener %r failed", listener)
            else:
                failure = exc
    if failure is not None:
        raise failure


def patch_snapshot(patch: Snapshot, injector: Injector | None = None) -> None:
    """Merge patch into the injector's live instances as one transaction.

    A patch that is not a mapping is ignored.
    """
    global _phase
    if not isinstance(patch, Mapping):
        logger.debug("Ignoring snapshot patch of type %s", type(patch).__name__)
        return
    injector = resolve_injector(injector)
    patch = clone_snapshot(patch)
    _phase = SnapshotPhase.PATCHING
    logger.debug("Patching snapshot: %s", ", ".join(map(str, patch)))
    try:
        with transaction():
            merged = _merge_graph(injector.dump(), patch)
            injector.load(merged)
    finally:
        after_reactions(_finish_patch)


def apply_snapshot(snapshot: Snapshot, injector: Injector | None = None) -> None:
    """Bring the injector's instances to snapshot. Non-mappings are ignored."""
    if isinstance(snapshot, Mapping):
        patch_snapshot(snapshot, injector)


# ─── Subscribe ───────────────────────────────────────────────────────────────


class SnapshotListener:
    """Handle returned by on_snapshot(). Call it, or .dispose(), to stop."""

    def __init__(
        self,
        on_change: Callable[[Any], None],
        injector: Injector,
        model_name: str | None = None,
    ) -> None:
        self.model_name = model_name
        self._on_change = on_change
        self._disposed = False
        self._snapshot = Computed(lambda: _snapshot_of(injector, model_name))
        self._reaction = reaction(
            self._snapshot.get, self._notify, equals=comparer.structural
        )

    def _notify(self, snapshot) -> None:
        if _phase is SnapshotPhase.DONE:
            self.deliver(snapshot)
        else:
            _deferred[self] = snapshot

    def deliver(self, snapshot) -> None:
        if not self._disposed:
            self._on_change(snapshot)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        self._disposed = True
        _deferred.pop(self, None)
        self._reaction.dispose()
        self._snapshot.dispose()

    def __call__(self) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"SnapshotListener({self.model_name or '*'}, {state})"


def on_snapshot(*args, injector: Injector | None = None) -> SnapshotListener:
    """Call on_change with the new snapshot whenever it changes by value.

        on_snapshot(on_change)
        on_snapshot(on_change, injector)
        on_snapshot("Counter", on_change)
        on_snapshot("Counter", on_change, injector)
    """
    model_name, rest = _split_name(args)
    on_change = rest[0]
    if len(rest) > 1:
        injector = rest[1]
    return SnapshotListener(on_change, resolve_injector(injector), model_name)
