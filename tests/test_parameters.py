"""
Parameter generator.

Covers:
  - cartesian order, leftmost parameter slowest
  - typed domains drawn from the object index
  - restartable iteration, len() and random access
  - empty parameter lists and empty domains
  - laziness on very large products
  - exact size and random access past 2**63
"""

from itertools import islice

import pytest

from symbolic.pddl.types import Object, ObjectIndex, TypeHierarchy
from symbolic.planning.parameters import Parameter, ParameterGenerator

HIERARCHY = TypeHierarchy({"truck": "vehicle", "vehicle": "object", "city": "object"})


@pytest.fixture
def index():
    return ObjectIndex([
        Object.create("t1", "truck", HIERARCHY),
        Object.create("c1", "city", HIERARCHY),
        Object.create("t2", "truck", HIERARCHY),
        Object.create("c2", "city", HIERARCHY),
        Object.create("c3", "city", HIERARCHY),
    ])


def names(args):
    return tuple(o.name for o in args)


def test_enumeration_order_leftmost_slowest(index):
    gen = ParameterGenerator(index, [Parameter("?v", "vehicle"), Parameter("?c", "city")])
    assert [names(args) for args in gen] == [
        ("t1", "c1"), ("t1", "c2"), ("t1", "c3"),
        ("t2", "c1"), ("t2", "c2"), ("t2", "c3"),
    ]


def test_iteration_is_restartable(index):
    gen = ParameterGenerator(index, [Parameter("?x"), Parameter("?y", "truck")])
    first = list(gen)
    assert first == list(gen)
    assert len(first) == len(gen) == 10


def test_random_access_matches_iteration(index):
    gen = ParameterGenerator(index, [Parameter("?c", "city"), Parameter("?x"), Parameter("?t", "truck")])
    items = list(gen)
    assert len(gen) == 30
    for i in (0, 1, 7, 29):
        assert gen[i] == items[i]
    assert gen[-1] == items[-1]
    with pytest.raises(IndexError):
        gen[30]


def test_no_parameters_yields_one_empty_binding(index):
    gen = ParameterGenerator(index, [])
    assert list(gen) == [()]
    assert len(gen) == 1
    assert gen[0] == ()


def test_empty_domain_yields_nothing(index):
    gen = ParameterGenerator(index, [Parameter("?v", "vehicle"), Parameter("?a", "airplane")])
    assert list(gen) == []
    assert len(gen) == 0


def test_bindings_extend_base(index):
    gen = ParameterGenerator(index, [Parameter("?t", "truck")])
    base = {"?c": index.find("c1")}
    bindings = list(gen.bindings(base))
    assert [b["?t"].name for b in bindings] == ["t1", "t2"]
    assert all(b["?c"].name == "c1" for b in bindings)
    assert base == {"?c": index.find("c1")}


def test_large_product_is_lazy(index):
    params = [Parameter(f"?x{i}") for i in range(14)]
    gen = ParameterGenerator(index, params)
    assert len(gen) == 5 ** 14
    first = list(islice(gen, 3))
    assert [names(args)[-1] for args in first] == ["t1", "c1", "t2"]
    assert gen[5 ** 14 - 1] == tuple(index.find("c3") for _ in params)


def test_size_and_random_access_beyond_int64():
    index = ObjectIndex(Object.create(f"o{i}", "object", HIERARCHY) for i in range(20))
    gen = ParameterGenerator(index, [Parameter(f"?x{i}") for i in range(15)])
    assert gen.size == 20 ** 15
    with pytest.raises(OverflowError):
        len(gen)
    assert names(gen[0]) == ("o0",) * 15
    assert names(gen[20 ** 15 - 1]) == ("o19",) * 15
    assert names(gen[-2]) == ("o19",) * 14 + ("o18",)
    assert names(gen[20]) == ("o0",) * 13 + ("o1", "o0")
    with pytest.raises(IndexError):
        gen[20 ** 15]
