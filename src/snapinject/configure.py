"""Library-wide switches."""

from snapinject import _tracking


def use_strict(strict: bool) -> bool:
    """Enable or disable strict mode. Returns the previous setting.

    In strict mode, mutating an existing observable outside an action or
    transaction raises StrictModeError.
    """
    return _tracking.set_strict(strict)


def is_strict() -> bool:
    return _tracking.is_strict()
