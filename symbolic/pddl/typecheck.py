import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from ..errors import MalformedInputError, TypeCheckError
from .ast import DomainAST, ProblemAST, TypedVar, ROOT_TYPE
from .domain_parser import parse_typed_list
from .sexpr_parser import SExpr, to_text
from .types import TypeHierarchy

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"

# Requirement flags implied by umbrella flags
IMPLIED_REQUIREMENTS = {
    ":adl": {":strips", ":typing", ":negative-preconditions", ":disjunctive-preconditions",
             ":equality", ":quantified-preconditions", ":conditional-effects"},
    ":quantified-preconditions": {":existential-preconditions", ":universal-preconditions"},
}

UNSUPPORTED_GOALS = {
    "preference", "always", "sometime", "within", "at-most-once", "sometime-after",
    "sometime-before", "always-within", "hold-during", "hold-after", "<", "<=", ">", ">=",
}
UNSUPPORTED_EFFECTS = {"increase", "decrease", "assign", "scale-up", "scale-down"}


@dataclass
class Diagnostic:
    severity: str
    location: str
    message: str

    def __str__(self):
        return f"{self.severity.upper()} [{self.location}] {self.message}"


@dataclass
class ValidationReport:
    ok: bool
    diagnostics: List[Diagnostic]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ERROR]

    def raise_for_errors(self) -> None:
        if not self.ok:
            raise TypeCheckError(self.errors)


def _head(expr: SExpr) -> str:
    if isinstance(expr, list) and expr and isinstance(expr[0], str):
        return expr[0].lower()
    return ""


def _temporal(expr: SExpr) -> bool:
    return (isinstance(expr, list) and len(expr) == 3 and isinstance(expr[1], str)
            and isinstance(expr[2], list)
            and ((_head(expr) == "at" and expr[1].lower() in ("start", "end"))
                 or (_head(expr) == "over" and expr[1].lower() == "all")))


class TypeChecker:
    """
    Static checks over the front-end ASTs: declared types, predicate
    signatures and arities, variable scoping, constant references and
    argument type compatibility.
    """

    def __init__(self, domain: DomainAST, problem: Optional[ProblemAST] = None):
        self.domain = domain
        self.problem = problem
        self.hierarchy = TypeHierarchy(domain.types)
        self.diagnostics: List[Diagnostic] = []
        self.used_requirements: Set[str] = set()

        self.signatures: Dict[str, List[str]] = {
            name: [p.type for p in pred.parameters] for name, pred in domain.predicates.items()
        }
        self.derived_names = {d.name for d in domain.derived}
        for derived in domain.derived:
            self.signatures.setdefault(derived.name, [p.type for p in derived.parameters])

    def check(self, verbose: bool = False) -> ValidationReport:
        self.diagnostics = []
        self.used_requirements = set()

        self._check_domain()
        if self.problem is not None:
            self._check_problem()
        self._check_requirements()

        diagnostics = [d for d in self.diagnostics if verbose or d.severity == ERROR]
        if verbose:
            for d in diagnostics:
                logger.warning("%s", d)
        ok = not any(d.severity == ERROR for d in self.diagnostics)
        return ValidationReport(ok=ok, diagnostics=diagnostics)

    def _error(self, location: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(ERROR, location, message))

    def _warning(self, location: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(WARNING, location, message))

    # Domain

    def _check_domain(self) -> None:
        location = f"domain {self.domain.name}"
        for type_name, parent in self.domain.types.items():
            if parent not in self.hierarchy:
                self._error(location, f"Parent type '{parent}' of '{type_name}' is not declared")
        cycle = self.hierarchy.find_cycle()
        if cycle is not None:
            self._error(location, "Cyclic type hierarchy: " + " -> ".join(cycle))
        if self.domain.types:
            self.used_requirements.add(":typing")

        for name, type_name in self.domain.constants.items():
            self._check_type(type_name, f"constant {name}")

        for pred in self.domain.predicates.values():
            for param in pred.parameters:
                self._check_type(param.type, f"predicate {pred.name}")

        constants = dict(self.domain.constants)
        for action in self.domain.actions.values():
            location = f"action {action.name}"
            scope = self._scope(action.parameters, {}, location)
            self._check_formula(action.precondition, scope, constants, location)
            self._check_effect(action.effect, scope, constants, location)

        for derived in self.domain.derived:
            location = f"derived {derived.name}"
            self.used_requirements.add(":derived-predicates")
            scope = self._scope(derived.parameters, {}, location)
            self._check_formula(derived.body, scope, constants, location)

        for axiom in self.domain.axioms:
            location = axiom.name
            scope = self._scope(axiom.parameters, {}, location)
            self._check_formula(axiom.context, scope, constants, location)
            self._check_effect(axiom.implies, scope, constants, location)

    # Problem

    def _check_problem(self) -> None:
        problem = self.problem
        location = f"problem {problem.name}"
        if problem.domain_name != self.domain.name:
            self._error(location, f"Problem refers to domain '{problem.domain_name}', "
                                  f"expected '{self.domain.name}'")

        for name, type_name in problem.objects.items():
            self._check_type(type_name, f"object {name}")
            if name in self.domain.constants:
                self._error(location, f"Object '{name}' is already declared as a constant")
        objects = dict(self.domain.constants)
        objects.update(problem.objects)

        for literal in problem.init:
            if literal.numeric:
                self._error(f"{location} init", f"Unsupported numeric fact {literal}")
                continue
            self._check_atom([literal.predicate] + literal.args, {}, objects,
                             f"{location} init", ground=True)
            if literal.predicate in self.derived_names:
                self._error(f"{location} init", f"Derived predicate asserted in init: {literal}")

        if problem.goal is not None:
            self._check_formula(problem.goal, {}, objects, f"{location} goal")
        if problem.constraints is not None:
            self._error(location, "Unsupported construct ':constraints'")

    # Requirements

    def _check_requirements(self) -> None:
        declared = set(self.domain.requirements)
        if self.problem is not None:
            declared |= set(self.problem.requirements)
        expanded = set(declared)
        for flag in declared:
            expanded |= IMPLIED_REQUIREMENTS.get(flag, set())
            for implied in IMPLIED_REQUIREMENTS.get(flag, set()):
                expanded |= IMPLIED_REQUIREMENTS.get(implied, set())

        for flag in sorted(self.used_requirements - expanded):
            self._warning(f"domain {self.domain.name}", f"Requirement {flag} is used but not declared")

    # Helpers

    def _check_type(self, type_name: str, location: str) -> None:
        if type_name not in self.hierarchy:
            self._error(location, f"Type '{type_name}' is not declared")

    def _scope(self, typed_vars: List[TypedVar], outer: Dict[str, str],
               location: str) -> Dict[str, str]:
        scope = dict(outer)
        for var in typed_vars:
            if not var.name.startswith("?"):
                self._error(location, f"Parameter '{var.name}' must start with '?'")
            self._check_type(var.type, location)
            scope[var.name] = var.type
        return scope

    def _quantified_scope(self, expr: List[SExpr], scope: Dict[str, str],
                          location: str) -> Dict[str, str] | None:
        if len(expr) != 3 or not isinstance(expr[1], list):
            self._error(location, f"Invalid quantifier: {to_text(expr)}")
            return None
        try:
            variables = [TypedVar(name, type_name) for name, type_name in parse_typed_list(expr[1])]
        except MalformedInputError as e:
            self._error(location, str(e))
            return None
        return self._scope(variables, scope, location)

    def _check_formula(self, expr: SExpr, scope: Dict[str, str], objects: Dict[str, str],
                       location: str) -> None:
        if expr is None:
            return
        if not isinstance(expr, list) or not expr:
            self._error(location, f"Invalid formula: {to_text(expr)}")
            return

        head = _head(expr)
        if _temporal(expr) or head in UNSUPPORTED_GOALS:
            self._error(location, f"Unsupported construct: {to_text(expr)}")
        elif head == "and":
            for sub in expr[1:]:
                self._check_formula(sub, scope, objects, location)
        elif head in ("or", "imply"):
            self.used_requirements.add(":disjunctive-preconditions")
            if head == "imply" and len(expr) != 3:
                self._error(location, f"Invalid implication: {to_text(expr)}")
            for sub in expr[1:]:
                self._check_formula(sub, scope, objects, location)
        elif head == "not":
            if len(expr) != 2:
                self._error(location, f"Invalid negation: {to_text(expr)}")
                return
            if _head(expr[1]) not in ("=",):
                self.used_requirements.add(":negative-preconditions")
            self._check_formula(expr[1], scope, objects, location)
        elif head in ("forall", "exists"):
            self.used_requirements.add(":universal-preconditions" if head == "forall"
                                       else ":existential-preconditions")
            inner = self._quantified_scope(expr, scope, location)
            if inner is not None:
                self._check_formula(expr[2], inner, objects, location)
        else:
            self._check_atom(expr, scope, objects, location)

    def _check_effect(self, expr: SExpr, scope: Dict[str, str], objects: Dict[str, str],
                      location: str) -> None:
        if expr is None:
            return
        if not isinstance(expr, list) or not expr:
            self._error(location, f"Invalid effect: {to_text(expr)}")
            return

        head = _head(expr)
        if _temporal(expr) or head in UNSUPPORTED_EFFECTS:
            self._error(location, f"Unsupported effect: {to_text(expr)}")
        elif head == "and":
            for sub in expr[1:]:
                self._check_effect(sub, scope, objects, location)
        elif head == "not":
            if len(expr) != 2:
                self._error(location, f"Invalid delete effect: {to_text(expr)}")
                return
            self._check_effect_atom(expr[1], scope, objects, location)
        elif head == "when":
            self.used_requirements.add(":conditional-effects")
            if len(expr) != 3:
                self._error(location, f"Invalid conditional effect: {to_text(expr)}")
                return
            self._check_formula(expr[1], scope, objects, location)
            self._check_effect(expr[2], scope, objects, location)
        elif head == "forall":
            self.used_requirements.add(":conditional-effects")
            inner = self._quantified_scope(expr, scope, location)
            if inner is not None:
                self._check_effect(expr[2], inner, objects, location)
        else:
            self._check_effect_atom(expr, scope, objects, location)

    def _check_effect_atom(self, expr: SExpr, scope, objects, location) -> None:
        if _head(expr) == "=":
            self._error(location, f"Equality cannot be an effect: {to_text(expr)}")
            return
        if isinstance(expr, list) and expr and expr[0] in self.derived_names \
                and not location.startswith("axiom"):
            self._error(location, f"Derived predicate '{expr[0]}' cannot be an action effect")
        self._check_atom(expr, scope, objects, location)

    def _check_atom(self, expr: SExpr, scope: Dict[str, str], objects: Dict[str, str],
                    location: str, ground: bool = False) -> None:
        if not isinstance(expr, list) or not expr or not isinstance(expr[0], str):
            self._error(location, f"Invalid atom: {to_text(expr)}")
            return

        name, args = expr[0], expr[1:]
        if name == "=":
            self.used_requirements.add(":equality")
            if len(args) != 2:
                self._error(location, f"Equality takes two arguments: {to_text(expr)}")
                return
            signature = [ROOT_TYPE, ROOT_TYPE]
        else:
            signature = self.signatures.get(name)
            if signature is None:
                self._error(location, f"Unknown predicate '{name}' in {to_text(expr)}")
                return
            if len(args) != len(signature):
                self._error(location, f"Predicate '{name}' takes {len(signature)} arguments, "
                                      f"got {len(args)} in {to_text(expr)}")
                return

        for arg, expected in zip(args, signature):
            if isinstance(arg, list):
                self._error(location, f"Unsupported function term {to_text(arg)}")
            elif arg.startswith("?"):
                if ground:
                    self._error(location, f"Fact must be ground: {to_text(expr)}")
                elif arg not in scope:
                    self._error(location, f"Unbound variable {arg} in {to_text(expr)}")
                elif not (self.hierarchy.is_subtype(scope[arg], expected)
                          or self.hierarchy.is_subtype(expected, scope[arg])):
                    self._error(location, f"Variable {arg} - {scope[arg]} is incompatible with "
                                          f"'{expected}' in {to_text(expr)}")
            elif arg not in objects:
                self._error(location, f"Unknown object '{arg}' in {to_text(expr)}")
            elif not self.hierarchy.is_subtype(objects[arg], expected):
                self._error(location, f"Object '{arg}' - {objects[arg]} is not a "
                                      f"'{expected}' in {to_text(expr)}")
