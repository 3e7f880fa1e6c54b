"""
Propositions and states.

Covers:
  - canonical text form and parsing
  - value equality of propositions and states
  - unknown predicate/object, arity and type errors in text input
  - stringify/parse round trip
"""

import pytest

from symbolic.errors import InvalidActionCallError, InvalidArgumentTypeError
from symbolic.pddl.types import Object
from symbolic.planning.state import Proposition, State


def test_proposition_text_form(blocksworld):
    a, b = blocksworld.object_map.find("A"), blocksworld.object_map.find("B")
    assert str(Proposition("on", (a, b))) == "on A B"
    assert str(Proposition("handempty")) == "handempty"


def test_proposition_parse_resolves_objects(blocksworld):
    prop = Proposition.parse(blocksworld.task, "on A B")
    assert prop == Proposition("on", (Object("A"), Object("B")))
    assert prop.arguments[0].type == "block"
    assert Proposition.parse(blocksworld.task, "handempty") == Proposition("handempty")


@pytest.mark.parametrize("text", ["flying A", "on A", "on A B A", "clear Z", ""])
def test_proposition_parse_rejects_bad_input(blocksworld, text):
    with pytest.raises(InvalidActionCallError):
        Proposition.parse(blocksworld.task, text)


def test_proposition_parse_checks_argument_types(briefcase):
    with pytest.raises(InvalidArgumentTypeError):
        Proposition.parse(briefcase.task, "in home")


def test_state_equality_ignores_order_and_duplicates(blocksworld):
    s1 = blocksworld.parse_state(["clear A", "on A B", "clear A"])
    s2 = blocksworld.parse_state(["on A B", "clear A"])
    assert s1 == s2
    assert len(s1) == 2
    assert s1.contains("on", Object("A"), Object("B"))
    assert not s1.contains("on", Object("B"), Object("A"))


def test_state_copy_is_independent(blocksworld):
    state = blocksworld.initial_state
    copy = state.copy()
    assert isinstance(copy, State)
    copy.discard(Proposition("handempty"))
    assert Proposition("handempty") in state
    assert copy != state


def test_frozen_state_is_hashable(blocksworld):
    states = {blocksworld.initial_state.frozen(), blocksworld.initial_state.frozen()}
    assert len(states) == 1


def test_stringify_round_trip(blocksworld):
    state = blocksworld.next_state(blocksworld.initial_state, "pick-up A")
    text = state.stringify()
    assert blocksworld.parse_state(text).stringify() == text
    assert str(state) == "{clear B, holding A, ontable B}"
