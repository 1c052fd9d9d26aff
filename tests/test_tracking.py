"""Tests for settle hooks and strict mode."""

import pytest

from snapinject import (
    Model,
    Observable,
    ObservableList,
    StrictModeError,
    after_reactions,
    autorun,
    is_strict,
    transaction,
    use_strict,
)


class TestAfterReactions:
    def test_runs_immediately_outside_batch(self):
        log = []
        after_reactions(lambda: log.append("settled"))
        assert log == ["settled"]

    def test_runs_after_reactions_of_batch(self):
        o = Observable(0)
        log = []
        autorun(lambda: log.append(("reaction", o.get())))

        with transaction():
            o.set(1)
            after_reactions(lambda: log.append("settled"))
            assert log == [("reaction", 0)]

        assert log == [("reaction", 0), ("reaction", 1), "settled"]

    def test_waits_for_outermost_batch(self):
        log = []
        with transaction():
            with transaction():
                after_reactions(lambda: log.append("settled"))
            assert log == []
        assert log == ["settled"]

    def test_hook_registered_during_flush_runs_after_it(self):
        o = Observable(0)
        other = Observable(0)
        log = []

        def on_change():
            value = o.get()
            if value:
                after_reactions(lambda: log.append("settled"))
                other.set(value)

        autorun(on_change)
        autorun(lambda: log.append(("other", other.get())))

        with transaction():
            o.set(5)

        assert log == [("other", 0), ("other", 5), "settled"]


class TestStrictMode:
    def test_use_strict_returns_previous(self):
        assert use_strict(True) is False
        assert is_strict()
        assert use_strict(False) is True
        assert not is_strict()

    def test_mutation_outside_action_raises(self):
        o = Observable(0)
        use_strict(True)
        with pytest.raises(StrictModeError):
            o.set(1)
        assert o.get() == 0

    def test_mutation_inside_transaction_allowed(self):
        o = Observable(0)
        lst = ObservableList()
        use_strict(True)
        with transaction():
            o.set(1)
            lst.append(1)
        assert o.get() == 1
        assert list(lst) == [1]

    def test_container_mutation_outside_action_raises(self):
        lst = ObservableList([1])
        use_strict(True)
        with pytest.raises(StrictModeError):
            lst.append(2)
        assert list(lst) == [1]

    def test_creating_observables_is_allowed(self):
        class Counter(Model):
            count = 0

        use_strict(True)
        counter = Counter()
        counter.label = "new field"
        assert counter.label == "new field"
        with pytest.raises(StrictModeError):
            counter.count = 1

    def test_equal_write_is_not_a_mutation(self):
        o = Observable(3)
        use_strict(True)
        o.set(3)
