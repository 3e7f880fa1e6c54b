"""
Derived-predicate (axiom) evaluator.

Covers:
  - initial state is closed under derived predicates and axioms
  - recursive derived predicates reach the transitive closure and terminate
  - idempotence of the fixed point
  - axioms are add-only: derived atoms are never retracted
  - declaration order does not change the fixed point
"""

from symbolic.planning.axioms import apply_axioms
from symbolic.planning.pddl import Pddl

from conftest import data_file


def tower_of(n):
    """Problem text with blocks b1 on b2 on ... on bn."""
    blocks = [f"b{i}" for i in range(1, n + 1)]
    facts = [f"(on {upper} {lower})" for upper, lower in zip(blocks, blocks[1:])]
    facts += [f"(ontable {blocks[-1]})", f"(clear {blocks[0]})", "(handempty)"]
    return f"""
        (define (problem tower-{n})
          (:domain tower)
          (:objects {' '.join(blocks)} - block)
          (:init {' '.join(facts)})
          (:goal (above b1 b{n})))
    """


def load_tower(n):
    return Pddl.from_strings(data_file("tower_domain.pddl").read_text(), tower_of(n))


def above_facts(state):
    return {fact for fact in state.stringify() if fact.startswith("above ")}


def test_initial_state_is_closed(tower):
    assert tower.initial_state.stringify() == {
        "on a b", "on b c", "ontable c", "clear a", "handempty",
        "above a b", "above b c", "above a c",
    }


def test_recursive_derived_predicate_terminates_with_transitive_closure():
    n = 7
    pddl = load_tower(n)
    expected = {f"above b{i} b{j}" for i in range(1, n + 1) for j in range(i + 1, n + 1)}
    assert above_facts(pddl.initial_state) == expected
    assert len(expected) == n * (n - 1) // 2
    assert pddl.is_goal_satisfied(pddl.initial_state)


def test_fixed_point_is_idempotent(tower):
    state = tower.parse_state(["on a b", "on b c", "ontable c", "clear a", "handempty"])
    assert apply_axioms(tower.task.rules, state) is True
    closed = state.copy()
    assert apply_axioms(tower.task.rules, state) is False
    assert state == closed


def test_fixed_point_is_independent_of_rule_order(tower):
    base = ["on a b", "on b c", "ontable c", "clear a", "handempty"]
    forward = tower.parse_state(base)
    backward = tower.parse_state(base)
    apply_axioms(tower.task.rules, forward)
    apply_axioms(list(reversed(tower.task.rules)), backward)
    assert forward == backward


def test_axiom_fires_after_action(tower):
    state = tower.next_state(tower.initial_state, "unstack a b")
    assert "isolated a" not in state.stringify()
    state = tower.next_state(state, "put-down a")
    assert "isolated a" in state.stringify()


def test_derived_atoms_are_not_retracted(tower):
    state = tower.next_state(tower.initial_state, "unstack a b")
    facts = state.stringify()
    assert "on a b" not in facts
    assert {"above a b", "above a c", "above b c"} <= facts


def test_axiom_components(tower):
    (above,) = tower.derived_predicates
    assert above.name == "above"
    assert [str(p) for p in above.parameters] == ["?x - block", "?y - block"]
    (isolated,) = tower.axioms
    assert [atom.predicate for atom in isolated.head] == ["isolated"]
