"""Dependency tracking and batching for the observable graph.

A contextvar records which derivation (computed or reaction) is currently
evaluating; every observable read during that evaluation subscribes it.

Mutations inside a batch (``@action`` / ``with transaction()``) only queue
their dependents. The outermost batch exit drains the queue, then runs any
hooks registered with after_reactions(), so a hook sees the graph after every
reaction triggered by the batch has finished.
"""

from __future__ import annotations

import contextvars
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from snapinject.computed import Computed
    from snapinject.reaction import Reaction

    Derivation = Computed | Reaction


class StrictModeError(RuntimeError):
    """An observable was mutated outside an action while strict mode is on."""


current_derivation: contextvars.ContextVar[Derivation | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

_batch_depth: int = 0
_flushing: bool = False
_strict: bool = False

_pending: dict[Derivation, None] = {}  # insertion-ordered set
_settle_hooks: list[Callable[[], None]] = []


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. The outermost exit flushes, then settles."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def is_batching() -> bool:
    return _batch_depth > 0


def schedule(derivation: Derivation) -> None:
    """Schedule a derivation for re-evaluation.

    If inside a batch or a flush, defers. Otherwise, runs immediately.
    """
    if _batch_depth > 0 or _flushing:
        _pending[derivation] = None
    else:
        derivation._run()


def _flush_pending() -> None:
    global _flushing
    if _flushing:
        return
    _flushing = True
    try:
        while _pending:
            # Derivations may schedule new ones while running.
            batch = list(_pending)
            _pending.clear()
            for derivation in batch:
                derivation._run()
    finally:
        _flushing = False
    _run_settle_hooks()


def _run_settle_hooks() -> None:
    while _settle_hooks and _batch_depth == 0 and not _flushing:
        hooks = list(_settle_hooks)
        _settle_hooks.clear()
        for hook in hooks:
            hook()


def after_reactions(fn: Callable[[], None]) -> None:
    """Run fn once, after the current batch of reactions has settled.

    Outside any batch or flush there is nothing to wait for, so fn runs now.
    """
    if _batch_depth == 0 and not _flushing:
        fn()
    else:
        _settle_hooks.append(fn)


def set_strict(strict: bool) -> bool:
    """Toggle strict mode. Returns the previous setting."""
    global _strict
    previous = _strict
    _strict = strict
    return previous


def is_strict() -> bool:
    return _strict


def check_mutation(target: object) -> None:
    """Raise StrictModeError if target may not be mutated right now."""
    if _strict and _batch_depth == 0:
        raise StrictModeError(
            f"Cannot modify {target!r} outside an action while strict mode is enabled"
        )


def get_pending_count() -> int:
    """Number of derivations waiting to run. Useful for testing."""
    return len(_pending)
