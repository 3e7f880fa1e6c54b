"""
Goal / precondition evaluator.

Covers:
  - every supported formula kind, including equality and implication
  - quantifiers over typed domains, nested quantifier scopes
  - short-circuit behaviour of and/or
  - unsupported constructs raise, even behind a short-circuit
  - every FormulaKind has an evaluator
"""

import pytest

from symbolic.errors import UnsupportedFeatureError
from symbolic.pddl.types import Object, ObjectIndex, TypeHierarchy
from symbolic.planning import formula as formula_module
from symbolic.planning.formula import (
    TRUE, And, Atom, Exists, Forall, FormulaKind, Imply, Not, Or, Unsupported, Variable,
    evaluate, find_unsupported, require_supported,
)
from symbolic.planning.parameters import Parameter
from symbolic.planning.state import Proposition, State

HIERARCHY = TypeHierarchy({"block": "object", "table": "object"})
A = Object.create("a", "block", HIERARCHY)
B = Object.create("b", "block", HIERARCHY)
T = Object.create("t", "table", HIERARCHY)
INDEX = ObjectIndex([A, B, T])

X, Y = Variable("?x"), Variable("?y")

STATE = State({
    Proposition("on", (A, B)),
    Proposition("on", (B, T)),
    Proposition("clear", (A,)),
})


def holds(formula, binding=None):
    return evaluate(formula, STATE, binding or {}, INDEX)


def test_atom_membership_after_substitution():
    assert holds(Atom("on", (X, B)), {"?x": A})
    assert not holds(Atom("on", (X, B)), {"?x": B})
    assert holds(Atom("clear", (A,)))


def test_unbound_variable_is_an_error():
    with pytest.raises(KeyError):
        holds(Atom("clear", (X,)))


def test_equality_compares_arguments():
    assert holds(Atom("=", (X, A)), {"?x": A})
    assert not holds(Atom("=", (X, Y)), {"?x": A, "?y": B})


def test_connectives():
    assert holds(Not(Atom("clear", (B,))))
    assert holds(And((Atom("clear", (A,)), Atom("on", (A, B)))))
    assert not holds(And((Atom("clear", (A,)), Atom("clear", (B,)))))
    assert holds(Or((Atom("clear", (B,)), Atom("on", (B, T)))))
    assert not holds(Or(()))
    assert holds(TRUE)


def test_implication():
    assert holds(Imply(Atom("clear", (B,)), Atom("on", (T, A))))
    assert holds(Imply(Atom("clear", (A,)), Atom("on", (A, B))))
    assert not holds(Imply(Atom("clear", (A,)), Atom("on", (B, A))))


def test_quantifiers_range_over_typed_domain():
    blocks_are_on_something = Forall(
        (Parameter("?x", "block"),),
        Exists((Parameter("?y"),), Atom("on", (X, Y))),
    )
    assert holds(blocks_are_on_something)

    everything_on_something = Forall(
        (Parameter("?x"),),
        Exists((Parameter("?y"),), Atom("on", (X, Y))),
    )
    assert not holds(everything_on_something)

    assert holds(Exists((Parameter("?x", "block"),), Atom("clear", (X,))))
    assert not holds(Exists((Parameter("?x", "table"),), Atom("clear", (X,))))


def test_quantifier_over_empty_domain():
    assert holds(Forall((Parameter("?x", "robot"),), Atom("clear", (X,))))
    assert not holds(Exists((Parameter("?x", "robot"),), TRUE))


def test_inner_quantifier_shadows_outer_binding():
    inner = Exists((Parameter("?x", "table"),), Atom("on", (B, X)))
    assert holds(inner, {"?x": A})


def test_and_short_circuits_on_first_false():
    # The second conjunct would raise KeyError if evaluated
    assert not holds(And((Atom("clear", (B,)), Atom("clear", (X,)))))
    assert holds(Or((Atom("clear", (A,)), Atom("clear", (X,)))))


def test_unsupported_raises_on_evaluation():
    node = Unsupported("at end", "(at end (clear a))")
    with pytest.raises(UnsupportedFeatureError) as excinfo:
        holds(node)
    assert excinfo.value.construct == "at end"


def test_unsupported_is_found_behind_short_circuit():
    formula = Or((Atom("clear", (A,)), Unsupported("preference")))
    assert holds(formula)
    assert find_unsupported(formula) == Unsupported("preference")
    with pytest.raises(UnsupportedFeatureError):
        require_supported(formula)
    require_supported(And((Atom("clear", (A,)), Not(TRUE))))


def test_every_kind_has_an_evaluator():
    assert set(formula_module._EVALUATORS) == set(FormulaKind)
    assert set(formula_module._CHILDREN) == set(FormulaKind)
