"""Actions and transactions — batched state mutations.

Wrapping mutations in an @action or `with transaction()` defers all
reaction/computed invalidation until the outermost scope exits, so
dependents never observe a half-applied change. Strict mode only allows
mutations inside these scopes.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from snapinject._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction():
    """Context manager for batching mutations.

    Usage:
        with transaction():
            counter_a.set(1)
            counter_b.set(2)
            # reactions fire here, after both are set
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all observable mutations inside fn.

    Usage:
        @action
        def swap():
            a, b = counter_a.get(), counter_b.get()
            counter_a.set(b)
            counter_b.set(a)
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper


def run_in_action(fn: Callable[[], R]) -> R:
    """Call fn immediately inside a batch and return its result."""
    with transaction():
        return fn()
