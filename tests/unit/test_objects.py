"""Object reference table: identity interning and release."""
import pytest

from jsii_kernel.kernel.errors import UnknownHandleError
from jsii_kernel.kernel.objects import ObjectReferenceTable


class Thing:
    def __init__(self, value):
        self.value = value

    def __eq__(self, other):
        return isinstance(other, Thing) and other.value == self.value

    __hash__ = None


def test_same_instance_gets_same_handle():
    table = ObjectReferenceTable()
    thing = Thing(1)

    first = table.intern(thing)
    second = table.intern(thing)

    assert first == second
    assert table.resolve(first) is thing
    assert len(table) == 1


def test_equal_but_distinct_instances_get_distinct_handles():
    table = ObjectReferenceTable()
    a, b = Thing(1), Thing(1)
    assert a == b

    assert table.intern(a) != table.intern(b)
    assert len(table) == 2


def test_unhashable_instances_can_be_interned():
    table = ObjectReferenceTable()
    handle = table.intern(Thing(3))
    assert handle.startswith("Thing@")


def test_resolve_unknown_handle_raises():
    table = ObjectReferenceTable()
    with pytest.raises(UnknownHandleError, match="nonexistent"):
        table.resolve("nonexistent")


def test_release_forgets_both_directions():
    table = ObjectReferenceTable()
    thing = Thing(1)
    handle = table.intern(thing)

    table.release(handle)

    assert handle not in table
    with pytest.raises(UnknownHandleError):
        table.resolve(handle)
    # Re-interning after release allocates a fresh handle.
    assert table.intern(thing) != handle


def test_release_unknown_handle_raises():
    table = ObjectReferenceTable()
    with pytest.raises(UnknownHandleError):
        table.release("nonexistent")
