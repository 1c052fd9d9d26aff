"""Equality strategies for reaction(equals=...)."""

from __future__ import annotations

from collections.abc import Mapping

from snapinject.observable import ObservableDict, ObservableList


def identity(a, b) -> bool:
    return a is b


def default(a, b) -> bool:
    return a is b or a == b


def structural(a, b) -> bool:
    """Deep equality by value.

    Mappings compare by key set and per-key value, sequences by length and
    per-index value; observable containers compare like their plain
    counterparts. Key order does not matter, list order does.
    """
    if a is b:
        return True
    if _is_mapping(a) and _is_mapping(b):
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b or not structural(value, b[key]):
                return False
        return True
    if _is_sequence(a) and _is_sequence(b):
        if len(a) != len(b):
            return False
        return all(structural(x, y) for x, y in zip(a, b))
    if _is_mapping(a) or _is_mapping(b) or _is_sequence(a) or _is_sequence(b):
        return False
    return a == b


def _is_mapping(value) -> bool:
    return isinstance(value, (Mapping, ObservableDict))


def _is_sequence(value) -> bool:
    return isinstance(value, (list, tuple, ObservableList))
