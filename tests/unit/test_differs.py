"""Unit tests for same_value and the structural differ."""

import numpy as np
import pytest

from storeflux import ChangeKind, KeyValueDiffers, ShapeError, same_value


@pytest.mark.unit
@pytest.mark.differ
def test_same_value_nan_equals_nan():
    assert same_value(float("nan"), float("nan"))
    assert same_value(np.float64("nan"), float("nan"))


@pytest.mark.unit
@pytest.mark.differ
def test_same_value_distinguishes_signed_zero():
    assert not same_value(0.0, -0.0)
    assert same_value(-0.0, -0.0)
    assert same_value(0, 0.0)


@pytest.mark.unit
@pytest.mark.differ
def test_same_value_compares_scalars_by_value():
    big = 10**30
    assert same_value(big, int(str(big)))
    assert same_value("ab", "".join(["a", "b"]))
    assert same_value(np.int64(3), 3)
    assert same_value(None, None)
    assert not same_value(1, 2)
    assert not same_value("1", 1)


@pytest.mark.unit
@pytest.mark.differ
def test_same_value_keeps_booleans_apart_from_numbers():
    assert same_value(True, True)
    assert same_value(np.bool_(False), False)
    assert not same_value(True, 1)
    assert not same_value(0, False)


@pytest.mark.unit
@pytest.mark.differ
def test_same_value_uses_identity_for_objects():
    """Containers and objects are never compared structurally"""
    items = [1, 2]
    assert same_value(items, items)
    assert not same_value([1, 2], [1, 2])
    assert not same_value({"a": 1}, {"a": 1})


@pytest.mark.unit
@pytest.mark.differ
def test_first_diff_primes_with_additions():
    differ = KeyValueDiffers.default().find({}).create()
    changes = differ.diff({"a": 1, "b": 2})

    assert changes is not None
    assert [record.key for record in changes.added] == ["a", "b"]
    assert differ.primed


@pytest.mark.unit
@pytest.mark.differ
def test_diff_reports_none_when_nothing_changed():
    store = {"a": 1, "items": []}
    differ = KeyValueDiffers.default().find(store).create()
    differ.diff(store)

    assert differ.diff(store) is None
    store["items"].append(1)  # same list object, not a change
    assert differ.diff(store) is None


@pytest.mark.unit
@pytest.mark.differ
def test_diff_reports_added_removed_and_changed_keys():
    store = {"a": 1, "b": 2}
    differ = KeyValueDiffers.default().find(store).create()
    differ.diff(store)

    store["a"] = 10
    del store["b"]
    store["c"] = 3
    changes = differ.diff(store)

    assert {record.key: record.kind for record in changes.records} == {
        "a": ChangeKind.CHANGED,
        "b": ChangeKind.REMOVED,
        "c": ChangeKind.ADDED,
    }
    assert changes.changed[0].previous == 1
    assert changes.changed[0].current == 10
    assert len(changes) == 3


@pytest.mark.unit
@pytest.mark.differ
def test_diff_objects_by_public_attributes():
    class Store:
        def __init__(self):
            self.count = 0
            self._private = 0

    store = Store()
    differ = KeyValueDiffers.default().find(store).create()
    differ.diff(store)

    store._private = 1
    assert differ.diff(store) is None

    store.count = 1
    assert differ.diff(store).keys == ["count"]


@pytest.mark.unit
@pytest.mark.differ
def test_diff_slotted_objects():
    class Point:
        __slots__ = ("x", "y")

        def __init__(self):
            self.x = 0
            self.y = 0

    point = Point()
    differ = KeyValueDiffers.default().find(point).create()
    differ.diff(point)
    point.y = 5

    assert differ.diff(point).keys == ["y"]


@pytest.mark.unit
@pytest.mark.differ
def test_find_rejects_unsupported_shapes():
    differs = KeyValueDiffers.default()
    for value in (1, "text", [1, 2], None):
        with pytest.raises(ShapeError):
            differs.find(value)


@pytest.mark.unit
@pytest.mark.differ
def test_diff_against_incompatible_value_is_a_shape_error():
    differ = KeyValueDiffers.default().find({}).create()
    with pytest.raises(ShapeError):
        differ.diff(42)


@pytest.mark.unit
@pytest.mark.differ
def test_extend_tries_new_factories_first():
    class ListFactory:
        def supports(self, value):
            return isinstance(value, list)

        def create(self):
            return "list-differ"

    differs = KeyValueDiffers.default().extend([ListFactory()])

    assert differs.find([1]).create() == "list-differ"
    assert differs.find({}).create() is not None
