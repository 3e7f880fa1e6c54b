"""
Front end: tokenizer, s-expression reader, domain and problem parsers.

Covers:
  - comments and parentheses in the tokenizer
  - unbalanced parentheses
  - typed lists with inheritance and untyped tails
  - actions, derived predicates and axioms in the domain AST
  - objects, init, goal, constraints in the problem AST
  - durative actions rejected as unsupported
"""

import pytest

from symbolic.errors import MalformedInputError, UnsupportedFeatureError
from symbolic.pddl.domain_parser import DomainParser, parse_typed_list
from symbolic.pddl.problem_parser import ProblemParser
from symbolic.pddl.sexpr_parser import parse_sexpr, to_text
from symbolic.pddl.tokenizer import tokenize

from conftest import data_file


def parse_domain(text):
    return DomainParser(parse_sexpr(tokenize(text))).parse()


def parse_problem(text):
    return ProblemParser(parse_sexpr(tokenize(text))).parse()


def test_tokenize_strips_comments_and_splits_parentheses():
    tokens = tokenize("(on a b) ; a comment (ignored)\n(clear a)")
    assert tokens == ["(", "on", "a", "b", ")", "(", "clear", "a", ")"]


def test_parse_sexpr_nests_lists():
    assert parse_sexpr(tokenize("(and (on a b) (not (clear b)))")) == [
        ["and", ["on", "a", "b"], ["not", ["clear", "b"]]]
    ]


@pytest.mark.parametrize("text", ["(and (on a b)", "(on a b))"])
def test_parse_sexpr_rejects_unbalanced_parentheses(text):
    with pytest.raises(MalformedInputError):
        parse_sexpr(tokenize(text))


def test_to_text_renders_nested_expression():
    assert to_text(["when", ["in", "?p"], ["at", "?p", "?to"]]) == "(when (in ?p) (at ?p ?to))"


def test_parse_typed_list_groups_names_and_defaults_to_object():
    items = ["a", "b", "-", "block", "t", "-", "table", "x"]
    assert parse_typed_list(items) == [("a", "block"), ("b", "block"), ("t", "table"), ("x", "object")]


def test_parse_typed_list_rejects_either_types():
    with pytest.raises(MalformedInputError):
        parse_typed_list(["a", "-", ["either", "block", "table"]])


def test_domain_parser_reads_blocksworld():
    domain = parse_domain(data_file("blocksworld_domain.pddl").read_text())
    assert domain.name == "blocksworld"
    assert domain.requirements == [":strips", ":typing"]
    assert domain.types == {"block": "object"}
    assert list(domain.actions) == ["pick-up", "put-down", "stack", "unstack"]

    stack = domain.actions["stack"]
    assert [(p.name, p.type) for p in stack.parameters] == [("?x", "block"), ("?y", "block")]
    assert stack.precondition == ["and", ["holding", "?x"], ["clear", "?y"]]
    assert [p.name for p in domain.predicates["on"].parameters] == ["?x", "?y"]
    assert domain.predicates["handempty"].parameters == []


def test_domain_parser_reads_derived_predicates_and_axioms():
    domain = parse_domain(data_file("tower_domain.pddl").read_text())
    assert [d.name for d in domain.derived] == ["above"]
    assert [p.name for p in domain.derived[0].parameters] == ["?x", "?y"]
    assert domain.derived[0].body[0] == "or"

    assert len(domain.axioms) == 1
    axiom = domain.axioms[0]
    assert axiom.name == "axiom-0"
    assert axiom.implies == ["isolated", "?x"]
    assert axiom.context == ["and", ["ontable", "?x"], ["clear", "?x"]]


def test_domain_parser_type_hierarchy():
    domain = parse_domain("""
        (define (domain d)
          (:types truck airplane - vehicle vehicle place - object city)
          (:constants hq - place))
    """)
    assert domain.types == {
        "truck": "vehicle", "airplane": "vehicle", "vehicle": "object",
        "place": "object", "city": "object",
    }
    assert domain.constants == {"hq": "place"}


def test_domain_parser_rejects_durative_actions():
    with pytest.raises(UnsupportedFeatureError):
        parse_domain("""
            (define (domain d)
              (:durative-action fly :parameters () :duration (= ?duration 1)
                :condition () :effect ()))
        """)


def test_domain_parser_requires_define():
    with pytest.raises(MalformedInputError):
        parse_domain("(problem-ish (domain d))")


def test_problem_parser_reads_objects_init_and_goal():
    problem = parse_problem(data_file("briefcase_problem.pddl").read_text())
    assert problem.name == "deliver-paper"
    assert problem.domain_name == "briefcase"
    assert problem.objects == {
        "home": "location", "office": "location",
        "paper": "portable", "dictionary": "portable",
    }
    assert [str(lit) for lit in problem.init] == [
        "(at-bc home)", "(at paper home)", "(at dictionary home)"
    ]
    assert problem.goal[0] == "and"
    assert problem.constraints is None


def test_problem_parser_marks_numeric_and_negated_init():
    problem = parse_problem("""
        (define (problem p) (:domain d) (:objects t)
          (:init (not (ready t)) (= (fuel t) 10))
          (:goal (ready t))
          (:constraints (always (ready t)))
          (:metric minimize (total-cost)))
    """)
    negated, numeric = problem.init
    assert negated.negated and negated.predicate == "ready"
    assert numeric.numeric and numeric.args == ["(fuel t)", "10"]
    assert problem.constraints == ["always", ["ready", "t"]]
    assert problem.metric == ["minimize", ["total-cost"]]
