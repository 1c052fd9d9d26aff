"""snapinject: a scoped instance container over observable state, with snapshots."""

from importlib.metadata import version as _version

__version__ = _version("snapinject")

from snapinject._tracking import StrictModeError, after_reactions, get_pending_count
from snapinject.observable import Atom, Observable, ObservableList, ObservableDict, ObservableMap, observable
from snapinject.computed import Computed, computed
from snapinject.reaction import Reaction, autorun, reaction
from snapinject.action import action, run_in_action, transaction
from snapinject import comparer
from snapinject.configure import is_strict, use_strict
from snapinject.meta import ModelKind, ModelMeta, Scope, get_meta
from snapinject.model import Model, model_fields, post_construct, store, view_model
from snapinject.injector import Injector, get_injector, set_injector, use_injector
from snapinject.initializers import initialize_store, initialize_view_model, release_owner
from snapinject.instantiate import inject, instantiate
from snapinject.snapshot import (
    SnapshotListener,
    SnapshotPhase,
    apply_snapshot,
    get_phase,
    get_snapshot,
    on_snapshot,
    patch_snapshot,
)

__all__ = [
    "Atom",
    "Observable",
    "ObservableList",
    "ObservableDict",
    "ObservableMap",
    "observable",
    "Computed",
    "computed",
    "Reaction",
    "autorun",
    "reaction",
    "action",
    "run_in_action",
    "transaction",
    "after_reactions",
    "get_pending_count",
    "comparer",
    "StrictModeError",
    "use_strict",
    "is_strict",
    "ModelKind",
    "ModelMeta",
    "Scope",
    "get_meta",
    "Model",
    "model_fields",
    "store",
    "view_model",
    "post_construct",
    "Injector",
    "get_injector",
    "set_injector",
    "use_injector",
    "initialize_store",
    "initialize_view_model",
    "release_owner",
    "inject",
    "instantiate",
    "SnapshotListener",
    "SnapshotPhase",
    "get_phase",
    "get_snapshot",
    "apply_snapshot",
    "patch_snapshot",
    "on_snapshot",
]
