"""Shared fixtures: every test gets a fresh ambient injector and non-strict mode."""

import pytest

from snapinject import Injector, use_injector, use_strict


@pytest.fixture(autouse=True)
def injector():
    previous = use_strict(False)
    with use_injector(Injector.new_instance()) as fresh:
        yield fresh
    use_strict(previous)
