import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Set, Tuple

from ..errors import InvalidActionCallError, MalformedInputError
from ..pddl.ast import DomainAST, ProblemAST, TypedVar
from ..pddl.domain_parser import parse_typed_list
from ..pddl.sexpr_parser import SExpr, to_text
from ..pddl.types import Object, ObjectIndex, TypeHierarchy
from .actions import Action
from .axioms import Axiom, DerivedPredicate, apply_axioms
from .effects import (
    AddEffect, ConditionalEffect, DeleteEffect, Effect, ForallEffect, UnsupportedEffect
)
from .formula import (
    EQUALITY, TRUE, And, Atom, Exists, Forall, Formula, Imply, Not, Or, Term, Unsupported, Variable
)
from .parameters import Parameter
from .state import Proposition, State

logger = logging.getLogger(__name__)

CONSTRAINT_OPERATORS = {
    "always", "sometime", "within", "at-most-once", "sometime-after",
    "sometime-before", "always-within", "hold-during", "hold-after",
}
NUMERIC_COMPARISONS = {"<", "<=", ">", ">="}
NUMERIC_EFFECTS = {"increase", "decrease", "assign", "scale-up", "scale-down"}
TIME_SPECIFIERS = {"start", "end"}


def _is_number(token) -> bool:
    if not isinstance(token, str):
        return False
    try:
        float(token)
    except ValueError:
        return False
    return True


def _head(expr: SExpr) -> str:
    if isinstance(expr, list) and expr and isinstance(expr[0], str):
        return expr[0].lower()
    return ""


def _temporal_construct(expr: List[SExpr]) -> str | None:
    """'at start' / 'at end' / 'over all' wrappers, else None."""
    if len(expr) == 3 and isinstance(expr[1], str) and isinstance(expr[2], list):
        qualifier = expr[1].lower()
        if _head(expr) == "at" and qualifier in TIME_SPECIFIERS:
            return f"at {qualifier}"
        if _head(expr) == "over" and qualifier == "all":
            return "over all"
    return None


class _Translator:
    """Converts raw formula/effect s-expressions into model entities."""

    def __init__(self, index: ObjectIndex):
        self.index = index

    def parameters(self, typed_vars: List[TypedVar]) -> Tuple[Parameter, ...]:
        return tuple(Parameter(v.name, v.type) for v in typed_vars)

    def term(self, symbol: SExpr, scope: Set[str]) -> Term:
        if not isinstance(symbol, str):
            raise MalformedInputError(f"Expected a term, got {to_text(symbol)}")
        if symbol.startswith("?"):
            if symbol not in scope:
                raise MalformedInputError(f"Unbound variable {symbol}")
            return Variable(symbol)
        obj = self.index.find(symbol)
        if obj is None:
            raise MalformedInputError(f"Unknown constant '{symbol}'")
        return obj

    def atom(self, expr: SExpr, scope: Set[str]) -> Atom:
        if not isinstance(expr, list) or not expr or not isinstance(expr[0], str):
            raise MalformedInputError(f"Invalid atom: {to_text(expr)}")
        return Atom(expr[0], tuple(self.term(arg, scope) for arg in expr[1:]))

    def formula(self, expr: SExpr, scope: Set[str]) -> Formula:
        if expr is None:
            return TRUE
        if not isinstance(expr, list) or not expr:
            raise MalformedInputError(f"Invalid formula: {to_text(expr)}")

        head = _head(expr)
        temporal = _temporal_construct(expr)
        if temporal is not None:
            return Unsupported(temporal, to_text(expr))
        if head == "and":
            return And(tuple(self.formula(sub, scope) for sub in expr[1:]))
        if head == "or":
            return Or(tuple(self.formula(sub, scope) for sub in expr[1:]))
        if head == "not":
            if len(expr) != 2:
                raise MalformedInputError(f"Invalid negation: {to_text(expr)}")
            return Not(self.formula(expr[1], scope))
        if head == "imply":
            if len(expr) != 3:
                raise MalformedInputError(f"Invalid implication: {to_text(expr)}")
            return Imply(self.formula(expr[1], scope), self.formula(expr[2], scope))
        if head in ("forall", "exists"):
            if len(expr) != 3 or not isinstance(expr[1], list):
                raise MalformedInputError(f"Invalid quantifier: {to_text(expr)}")
            params = tuple(Parameter(name, type_name)
                           for name, type_name in parse_typed_list(expr[1]))
            inner_scope = scope | {p.name for p in params}
            body = self.formula(expr[2], inner_scope)
            return Forall(params, body) if head == "forall" else Exists(params, body)
        if head == "preference":
            return Unsupported("preference", to_text(expr))
        if head in CONSTRAINT_OPERATORS:
            return Unsupported(head, to_text(expr))
        if head in NUMERIC_COMPARISONS:
            return Unsupported("numeric comparison", to_text(expr))
        if head == EQUALITY:
            if any(isinstance(arg, list) or _is_number(arg) for arg in expr[1:]):
                return Unsupported("numeric comparison", to_text(expr))
            if len(expr) != 3:
                raise MalformedInputError(f"Equality takes two arguments: {to_text(expr)}")
        return self.atom(expr, scope)

    def effects(self, expr: SExpr, scope: Set[str]) -> Tuple[Effect, ...]:
        if expr is None:
            return ()
        if not isinstance(expr, list) or not expr:
            raise MalformedInputError(f"Invalid effect: {to_text(expr)}")

        head = _head(expr)
        temporal = _temporal_construct(expr)
        if temporal is not None:
            return (UnsupportedEffect(temporal, to_text(expr)),)
        if head == "and":
            effects = []
            for sub in expr[1:]:
                effects.extend(self.effects(sub, scope))
            return tuple(effects)
        if head == "not":
            if len(expr) != 2:
                raise MalformedInputError(f"Invalid delete effect: {to_text(expr)}")
            return (DeleteEffect(self.atom(expr[1], scope)),)
        if head == "when":
            if len(expr) != 3:
                raise MalformedInputError(f"Invalid conditional effect: {to_text(expr)}")
            return (ConditionalEffect(self.formula(expr[1], scope), self.effects(expr[2], scope)),)
        if head == "forall":
            if len(expr) != 3 or not isinstance(expr[1], list):
                raise MalformedInputError(f"Invalid quantified effect: {to_text(expr)}")
            params = tuple(Parameter(name, type_name)
                           for name, type_name in parse_typed_list(expr[1]))
            inner_scope = scope | {p.name for p in params}
            return (ForallEffect(params, self.effects(expr[2], inner_scope)),)
        if head in NUMERIC_EFFECTS:
            return (UnsupportedEffect(head, to_text(expr)),)
        return (AddEffect(self.atom(expr, scope)),)

    def implied_atoms(self, expr: SExpr, scope: Set[str]) -> Tuple[Atom, ...]:
        """Axiom :implies must be a conjunction of positive atoms."""
        if _head(expr) == "and":
            atoms = []
            for sub in expr[1:]:
                atoms.extend(self.implied_atoms(sub, scope))
            return tuple(atoms)
        if _head(expr) in ("not", "or", "forall", "exists", "when", "imply"):
            raise MalformedInputError(f"Axiom :implies must be positive atoms: {to_text(expr)}")
        return (self.atom(expr, scope),)


@dataclass(frozen=True, eq=False)
class PlanningTask:
    """
    Fully-owned translation of a domain/problem AST pair. Immutable; queries
    copy `initial_state` into a State before changing it.
    """
    domain_name: str
    problem_name: str
    types: TypeHierarchy
    objects: Tuple[Object, ...]
    object_index: ObjectIndex
    signatures: Mapping[str, Tuple[str, ...]]   # predicate -> parameter types
    actions: Tuple[Action, ...]
    axioms: Tuple[Axiom, ...]
    derived_predicates: Tuple[DerivedPredicate, ...]
    initial_state: FrozenSet[Proposition]
    goal: Formula
    actions_by_name: Mapping[str, Action] = field(init=False, repr=False)

    def __post_init__(self):
        by_name = {action.name: action for action in self.actions}
        object.__setattr__(self, "actions_by_name", MappingProxyType(by_name))

    @property
    def rules(self) -> Tuple[Axiom, ...]:
        """Derived predicates followed by axioms, in declaration order."""
        return self.derived_predicates + self.axioms

    def find_action(self, name: str) -> Action:
        action = self.actions_by_name.get(name)
        if action is None:
            raise InvalidActionCallError(f"Unknown action '{name}'")
        return action

    @staticmethod
    def from_ast(domain: DomainAST, problem: ProblemAST) -> "PlanningTask":
        """
        - build the type hierarchy and the object index (constants first)
        - translate actions, derived predicates and axioms
        - build the initial state from the positive :init facts and close it
          under the axioms
        - translate the goal
        """
        types = TypeHierarchy(domain.types)

        objects = []
        seen = set()
        for name, type_name in list(domain.constants.items()) + list(problem.objects.items()):
            if name in seen:
                continue
            seen.add(name)
            objects.append(Object.create(name, type_name, types))
        index = ObjectIndex(objects)
        translator = _Translator(index)

        signatures = {name: tuple(p.type for p in pred.parameters)
                      for name, pred in domain.predicates.items()}
        for derived in domain.derived:
            signatures.setdefault(derived.name, tuple(p.type for p in derived.parameters))

        actions = []
        for schema in domain.actions.values():
            params = translator.parameters(schema.parameters)
            scope = {p.name for p in params}
            actions.append(Action(
                name=schema.name,
                parameters=params,
                precondition=translator.formula(schema.precondition, scope),
                effects=translator.effects(schema.effect, scope),
                object_index=index,
            ))

        derived_predicates = []
        for schema in domain.derived:
            params = translator.parameters(schema.parameters)
            body = translator.formula(schema.body, {p.name for p in params})
            derived_predicates.append(DerivedPredicate.create(schema.name, params, body, index))

        axioms = []
        for schema in domain.axioms:
            params = translator.parameters(schema.parameters)
            scope = {p.name for p in params}
            axioms.append(Axiom(
                name=schema.name,
                parameters=params,
                body=translator.formula(schema.context, scope),
                head=translator.implied_atoms(schema.implies, scope),
                object_index=index,
            ))

        initial_state = State()
        for literal in problem.init:
            if literal.numeric:
                logger.warning("Ignoring numeric init fact %s", literal)
                continue
            if literal.negated:
                continue
            arguments = []
            for arg in literal.args:
                obj = index.find(arg)
                if obj is None:
                    raise MalformedInputError(f"Unknown object '{arg}' in init fact {literal}")
                arguments.append(obj)
            initial_state.add(Proposition(literal.predicate, tuple(arguments)))

        goal = translator.formula(problem.goal, set())
        if problem.constraints is not None:
            goal = And((goal, Unsupported("constraints", to_text(problem.constraints))))
        if problem.metric is not None:
            logger.warning("Ignoring :metric %s", to_text(problem.metric))

        apply_axioms(derived_predicates + axioms, initial_state)

        task = PlanningTask(
            domain_name=domain.name,
            problem_name=problem.name,
            types=types,
            objects=tuple(objects),
            object_index=index,
            signatures=MappingProxyType(signatures),
            actions=tuple(actions),
            axioms=tuple(axioms),
            derived_predicates=tuple(derived_predicates),
            initial_state=initial_state.frozen(),
            goal=goal,
        )

        logger.debug("Translated domain '%s' / problem '%s': %d objects, %d actions, "
                     "%d derived predicates, %d axioms, %d initial facts",
                     domain.name, problem.name, len(objects), len(actions),
                     len(derived_predicates), len(axioms), len(task.initial_state))
        return task
