"""
Goal / precondition formulas.

Formulas form a closed set of node classes, each tagged with a
`FormulaKind`. `evaluate` dispatches on the tag through `_EVALUATORS`,
which has exactly one entry per kind; `Unsupported` is an explicit node
for temporal, numeric, preference and constraint constructs and raises
`UnsupportedFeatureError` when evaluated.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Tuple, Union

from ..errors import UnsupportedFeatureError
from ..pddl.types import Object, ObjectIndex
from .parameters import Binding, Parameter, ParameterGenerator
from .state import Proposition, State

EQUALITY = "="


class FormulaKind(Enum):
    ATOM = "atom"
    NOT = "not"
    AND = "and"
    OR = "or"
    IMPLY = "imply"
    FORALL = "forall"
    EXISTS = "exists"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Variable:
    name: str

    def __str__(self):
        return self.name


Term = Union[Variable, Object]


@dataclass(frozen=True)
class Atom:
    kind: ClassVar[FormulaKind] = FormulaKind.ATOM
    predicate: str
    args: Tuple[Term, ...] = ()

    def ground(self, binding: Binding) -> Proposition:
        arguments = []
        for arg in self.args:
            if isinstance(arg, Variable):
                if arg.name not in binding:
                    raise KeyError(f"Unbound variable {arg.name} in {self}")
                arguments.append(binding[arg.name])
            else:
                arguments.append(arg)
        return Proposition(self.predicate, tuple(arguments))

    def __str__(self):
        return "(" + " ".join([self.predicate] + [str(arg) for arg in self.args]) + ")"


@dataclass(frozen=True)
class Not:
    kind: ClassVar[FormulaKind] = FormulaKind.NOT
    formula: "Formula"


@dataclass(frozen=True)
class And:
    kind: ClassVar[FormulaKind] = FormulaKind.AND
    formulas: Tuple["Formula", ...] = ()


@dataclass(frozen=True)
class Or:
    kind: ClassVar[FormulaKind] = FormulaKind.OR
    formulas: Tuple["Formula", ...] = ()


@dataclass(frozen=True)
class Imply:
    kind: ClassVar[FormulaKind] = FormulaKind.IMPLY
    antecedent: "Formula"
    consequent: "Formula"


@dataclass(frozen=True)
class Forall:
    kind: ClassVar[FormulaKind] = FormulaKind.FORALL
    parameters: Tuple[Parameter, ...]
    formula: "Formula"


@dataclass(frozen=True)
class Exists:
    kind: ClassVar[FormulaKind] = FormulaKind.EXISTS
    parameters: Tuple[Parameter, ...]
    formula: "Formula"


@dataclass(frozen=True)
class Unsupported:
    kind: ClassVar[FormulaKind] = FormulaKind.UNSUPPORTED
    construct: str
    text: str = ""


Formula = Union[Atom, Not, And, Or, Imply, Forall, Exists, Unsupported]

TRUE = And(())


def evaluate(formula: Formula, state: State, binding: Binding, index: ObjectIndex) -> bool:
    """Evaluate `formula` against `state` with free variables taken from `binding`."""
    return _EVALUATORS[formula.kind](formula, state, binding, index)


def _evaluate_atom(formula: Atom, state, binding, index) -> bool:
    prop = formula.ground(binding)
    if prop.name == EQUALITY:
        return prop.arguments[0] == prop.arguments[1]
    return prop in state


def _evaluate_not(formula: Not, state, binding, index) -> bool:
    return not evaluate(formula.formula, state, binding, index)


def _evaluate_and(formula: And, state, binding, index) -> bool:
    return all(evaluate(f, state, binding, index) for f in formula.formulas)


def _evaluate_or(formula: Or, state, binding, index) -> bool:
    return any(evaluate(f, state, binding, index) for f in formula.formulas)


def _evaluate_imply(formula: Imply, state, binding, index) -> bool:
    return (not evaluate(formula.antecedent, state, binding, index)
            or evaluate(formula.consequent, state, binding, index))


def _evaluate_forall(formula: Forall, state, binding, index) -> bool:
    generator = ParameterGenerator(index, formula.parameters)
    return all(evaluate(formula.formula, state, b, index) for b in generator.bindings(binding))


def _evaluate_exists(formula: Exists, state, binding, index) -> bool:
    generator = ParameterGenerator(index, formula.parameters)
    return any(evaluate(formula.formula, state, b, index) for b in generator.bindings(binding))


def _evaluate_unsupported(formula: Unsupported, state, binding, index) -> bool:
    raise UnsupportedFeatureError(formula.construct, formula.text)


def children(formula: Formula) -> Tuple[Formula, ...]:
    return _CHILDREN[formula.kind](formula)


def find_unsupported(formula: Formula) -> Unsupported | None:
    """
    First unsupported node in `formula`, if any. Callers check this before
    evaluating so that short-circuiting never hides an unsupported branch.
    """
    if formula.kind is FormulaKind.UNSUPPORTED:
        return formula
    for child in children(formula):
        found = find_unsupported(child)
        if found is not None:
            return found
    return None


def require_supported(formula: Formula) -> None:
    unsupported = find_unsupported(formula)
    if unsupported is not None:
        raise UnsupportedFeatureError(unsupported.construct, unsupported.text)


_CHILDREN = {
    FormulaKind.ATOM: lambda f: (),
    FormulaKind.NOT: lambda f: (f.formula,),
    FormulaKind.AND: lambda f: f.formulas,
    FormulaKind.OR: lambda f: f.formulas,
    FormulaKind.IMPLY: lambda f: (f.antecedent, f.consequent),
    FormulaKind.FORALL: lambda f: (f.formula,),
    FormulaKind.EXISTS: lambda f: (f.formula,),
    FormulaKind.UNSUPPORTED: lambda f: (),
}

_EVALUATORS = {
    FormulaKind.ATOM: _evaluate_atom,
    FormulaKind.NOT: _evaluate_not,
    FormulaKind.AND: _evaluate_and,
    FormulaKind.OR: _evaluate_or,
    FormulaKind.IMPLY: _evaluate_imply,
    FormulaKind.FORALL: _evaluate_forall,
    FormulaKind.EXISTS: _evaluate_exists,
    FormulaKind.UNSUPPORTED: _evaluate_unsupported,
}
