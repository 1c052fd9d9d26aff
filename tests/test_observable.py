"""Tests for Observable, ObservableList, and ObservableDict."""

from snapinject import (
    Atom,
    Observable,
    ObservableDict,
    ObservableList,
    ObservableMap,
    autorun,
    observable,
    transaction,
)


class TestObservable:
    def test_get_set(self):
        o = Observable(42)
        assert o.get() == 42
        o.set(100)
        assert o.get() == 100

    def test_dedup(self):
        """Setting the same value should not trigger observers."""
        o = Observable(42)
        log = []
        autorun(lambda: log.append(o.get()))
        assert log == [42]
        o.set(42)
        assert log == [42]  # no re-run

    def test_notifies_observers(self):
        o = Observable("hello")
        log = []
        autorun(lambda: log.append(o.get()))
        assert log == ["hello"]
        o.set("world")
        assert log == ["hello", "world"]

    def test_repr(self):
        o = Observable(5)
        assert "Observable(5)" in repr(o)


class TestObservableList:
    def test_basic_operations(self):
        lst = ObservableList([1, 2, 3])
        assert len(lst) == 3
        assert lst[0] == 1
        assert list(lst) == [1, 2, 3]
        assert 2 in lst
        assert bool(lst) is True

    def test_mutations_notify(self):
        lst = ObservableList([1, 2])
        log = []
        autorun(lambda: log.append(list(lst)))
        assert log == [[1, 2]]
        lst.append(3)
        assert log == [[1, 2], [1, 2, 3]]
        lst.pop()
        assert log == [[1, 2], [1, 2, 3], [1, 2]]

    def test_extend(self):
        lst = ObservableList()
        log = []
        autorun(lambda: log.append(list(lst)))
        lst.extend([1, 2, 3])
        assert log == [[], [1, 2, 3]]

    def test_insert_remove_clear(self):
        lst = ObservableList([1, 2, 3])
        lst.insert(1, 99)
        assert list(lst) == [1, 99, 2, 3]
        lst.remove(99)
        assert list(lst) == [1, 2, 3]
        lst.clear()
        assert list(lst) == []

    def test_setitem_delitem(self):
        lst = ObservableList([1, 2, 3])
        lst[1] = 20
        assert list(lst) == [1, 20, 3]
        del lst[0]
        assert list(lst) == [20, 3]


class TestObservableDict:
    def test_basic_operations(self):
        d = ObservableDict({"a": 1, "b": 2})
        assert d["a"] == 1
        assert d.get("c", 99) == 99
        assert "a" in d
        assert len(d) == 2
        assert set(d) == {"a", "b"}
        assert bool(d) is True

    def test_mutations_notify(self):
        d = ObservableDict({"a": 1})
        log = []
        autorun(lambda: log.append(dict(d.items())))
        assert log == [{"a": 1}]
        d["b"] = 2
        assert log == [{"a": 1}, {"a": 1, "b": 2}]

    def test_pop_del_clear(self):
        d = ObservableDict({"a": 1, "b": 2})
        result = d.pop("a")
        assert result == 1
        assert "a" not in d
        del d["b"]
        assert len(d) == 0
        d["x"] = 10
        d.clear()
        assert len(d) == 0

    def test_update(self):
        d = ObservableDict({"a": 1})
        d.update({"b": 2}, c=3)
        assert d["b"] == 2
        assert d["c"] == 3

    def test_setdefault(self):
        d = ObservableDict({"a": 1})
        assert d.setdefault("a", 99) == 1
        assert d.setdefault("b", 42) == 42
        assert d["b"] == 42

    def test_keys_values_items(self):
        d = ObservableDict({"a": 1, "b": 2})
        assert set(d.keys()) == {"a", "b"}
        assert set(d.values()) == {1, 2}
        assert set(d.items()) == {("a", 1), ("b", 2)}


class TestObservableListTruncate:
    def test_truncate(self):
        lst = ObservableList([1, 2, 3, 4])
        log = []
        autorun(lambda: log.append(len(lst)))
        lst.truncate(2)
        assert list(lst) == [1, 2]
        assert log == [4, 2]
        lst.truncate(5)  # longer than the list: no-op
        assert log == [4, 2]

    def test_iteration_is_a_copy(self):
        lst = ObservableList([1, 2, 3])
        seen = []
        for item in lst:
            seen.append(item)
            if item == 1:
                lst.append(4)
        assert seen == [1, 2, 3]


class TestObservableMap:
    def test_is_a_dict(self):
        m = ObservableMap({"b": 1, "a": 2})
        assert isinstance(m, ObservableDict)
        assert list(m) == ["b", "a"]  # insertion order

    def test_set_notifies(self):
        m = ObservableMap()
        log = []
        autorun(lambda: log.append(dict(m.items())))
        m.set("x", 1)
        assert log == [{}, {"x": 1}]

    def test_repr(self):
        assert repr(ObservableMap({"a": 1})) == "ObservableMap({'a': 1})"


class TestAtom:
    def test_report_changed_reruns_observers(self):
        atom = Atom("signal")
        log = []
        autorun(lambda: (atom.report_observed(), log.append("run")))
        assert atom.observed
        atom.report_changed()
        assert log == ["run", "run"]

    def test_batched_changes_run_once(self):
        atom = Atom()
        log = []
        autorun(lambda: (atom.report_observed(), log.append("run")))
        with transaction():
            atom.report_changed()
            atom.report_changed()
        assert log == ["run", "run"]


class TestObservableConversion:
    def test_deep_conversion(self):
        value = observable({"todos": [{"title": "a"}], "count": 1})
        assert isinstance(value, ObservableDict)
        assert isinstance(value["todos"], ObservableList)
        assert isinstance(value["todos"][0], ObservableDict)
        assert value["count"] == 1

    def test_tuple_becomes_list(self):
        assert list(observable((1, 2))) == [1, 2]

    def test_observables_and_scalars_pass_through(self):
        m = ObservableMap()
        assert observable(m) is m
        assert observable("text") == "text"
        assert observable(None) is None

    def test_list_mutators_convert_values(self):
        lst = ObservableList()
        lst.append({"title": "a"})
        lst.extend([[1], {"b": 2}])
        lst.insert(0, (3, 4))
        lst[1] = {"title": "b"}
        assert isinstance(lst[0], ObservableList)
        assert isinstance(lst[1], ObservableDict)
        assert isinstance(lst[2], ObservableList)
        assert isinstance(lst[3], ObservableDict)

    def test_list_slice_assignment_converts_values(self):
        lst = ObservableList([1, 2])
        lst[0:2] = [{"a": 1}, [2]]
        assert isinstance(lst[0], ObservableDict)
        assert isinstance(lst[1], ObservableList)

    def test_dict_mutators_convert_values(self):
        d = ObservableDict({"seed": [1]})
        d["a"] = [1, 2]
        d.update({"b": {"x": 1}}, c=[3])
        d.setdefault("e", {"y": 2})
        for key in ("seed", "a", "c"):
            assert isinstance(d[key], ObservableList)
        for key in ("b", "e"):
            assert isinstance(d[key], ObservableDict)

    def test_nested_change_notifies_readers(self):
        lst = ObservableList()
        lst.append({"done": False})
        log = []
        autorun(lambda: log.append(lst[0]["done"]))
        lst[0]["done"] = True
        assert log == [False, True]
