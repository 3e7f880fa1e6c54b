from .ast import (
    DomainAST, PredicateSchema, ActionSchema, DerivedSchema, AxiomSchema, TypedVar, ROOT_TYPE
)
from .sexpr_parser import SExpr, to_text
from .tokenizer import is_keyword
from ..errors import MalformedInputError, UnsupportedFeatureError
from typing import List, Dict, Tuple


def parse_typed_list(items: List[SExpr], default_type: str = ROOT_TYPE) -> List[Tuple[str, str]]:
    """
    Parse a PDDL typed list such as `a b - t1 c - t2 d` into
    [(a, t1), (b, t1), (c, t2), (d, object)], preserving order.
    """
    result = []
    pending = []
    i = 0
    while i < len(items):
        item = items[i]
        if isinstance(item, list):
            raise MalformedInputError(f"Unexpected list in typed list: {to_text(item)}")
        if item == "-":
            if i + 1 >= len(items):
                raise MalformedInputError("Typed list ends with '-'")
            type_name = items[i + 1]
            if isinstance(type_name, list):
                # (either t1 t2)
                raise MalformedInputError(f"Unsupported type expression: {to_text(type_name)}")
            if not pending:
                raise MalformedInputError(f"Type '{type_name}' without names")
            result.extend((name, type_name) for name in pending)
            pending = []
            i += 2
        else:
            pending.append(item)
            i += 1

    result.extend((name, default_type) for name in pending)
    return result


def find_define(sexprs: List[SExpr], kind: str) -> List[SExpr]:
    """Return the `(define (<kind> name) ...)` expression."""
    for expr in sexprs:
        if isinstance(expr, list) and len(expr) >= 2:
            if is_keyword(expr[0], "define") and isinstance(expr[1], list) \
                    and expr[1] and is_keyword(expr[1][0], kind):
                return expr
    raise MalformedInputError(f"{kind.capitalize()} definition not found")


class DomainParser:
    def __init__(self, sexprs: List[SExpr]):
        self.sexprs = sexprs

    def parse(self) -> DomainAST:
        """
        Find (define (domain ...) ...) and build a DomainAST.
        Reads :requirements, :types, :constants, :predicates, :functions,
        :action, :derived and :axiom. Formulas stay raw s-expressions.
        """
        domain_expr = find_define(self.sexprs, "domain")
        header = domain_expr[1]
        if len(header) < 2 or not isinstance(header[1], str):
            raise MalformedInputError("Domain definition has no name")

        domain = DomainAST(
            name=header[1],
            requirements=[],
            types={},
            constants={},
            predicates={},
            actions={},
        )

        for item in domain_expr[2:]:
            if not isinstance(item, list) or len(item) == 0 or not isinstance(item[0], str):
                raise MalformedInputError(f"Unexpected domain element: {to_text(item)}")
            section = item[0].lower()
            if section == ":requirements":
                domain.requirements = [r.lower() for r in item[1:] if isinstance(r, str)]
            elif section == ":types":
                domain.types = self._parse_types(item[1:])
            elif section in (":constants", ":objects"):
                domain.constants.update(parse_typed_list(item[1:]))
            elif section == ":predicates":
                domain.predicates = self._parse_predicates(item[1:])
            elif section == ":functions":
                domain.functions = item[1:]
            elif section == ":action":
                action = self._parse_action(item[1:])
                if action.name in domain.actions:
                    raise MalformedInputError(f"Duplicate action '{action.name}'")
                domain.actions[action.name] = action
            elif section == ":derived":
                domain.derived.append(self._parse_derived(item[1:]))
            elif section == ":axiom":
                domain.axioms.append(self._parse_axiom(item[1:], len(domain.axioms)))
            elif section == ":durative-action":
                raise UnsupportedFeatureError(":durative-action", to_text(item[:2]))
            elif section == ":constraints":
                raise UnsupportedFeatureError("constraints", to_text(item))
            else:
                raise MalformedInputError(f"Unknown domain section '{item[0]}'")

        return domain

    def _parse_types(self, type_list: List[SExpr]) -> Dict[str, str]:
        """Parse the type hierarchy into {type: parent}."""
        return {name: parent for name, parent in parse_typed_list(type_list)}

    def _parse_predicates(self, pred_list: List[SExpr]) -> Dict[str, PredicateSchema]:
        predicates = {}
        for pred_def in pred_list:
            if not isinstance(pred_def, list) or len(pred_def) == 0:
                raise MalformedInputError(f"Invalid predicate declaration: {to_text(pred_def)}")
            pred_name = pred_def[0]
            params = self._parse_parameters(pred_def[1:])
            predicates[pred_name] = PredicateSchema(name=pred_name, parameters=params)
        return predicates

    def _parse_parameters(self, param_list: List[SExpr]) -> List[TypedVar]:
        return [TypedVar(name=name, type=type_name)
                for name, type_name in parse_typed_list(param_list)]

    def _parse_keyword_args(self, definition: List[SExpr]) -> Dict[str, SExpr]:
        """Collect `:key value` pairs of an operator definition."""
        fields = {}
        i = 0
        while i < len(definition):
            key = definition[i]
            if not isinstance(key, str) or not key.startswith(":"):
                raise MalformedInputError(f"Expected keyword, got {to_text(key)}")
            if i + 1 >= len(definition):
                raise MalformedInputError(f"Missing value for {key}")
            fields[key.lower()] = definition[i + 1]
            i += 2
        return fields

    def _parse_action(self, action_def: List[SExpr]) -> ActionSchema:
        if len(action_def) == 0 or not isinstance(action_def[0], str):
            raise MalformedInputError("Empty action definition")

        action_name = action_def[0]
        fields = self._parse_keyword_args(action_def[1:])
        parameters = fields.get(":parameters", [])
        if not isinstance(parameters, list):
            raise MalformedInputError(f"Invalid parameters for action '{action_name}'")

        return ActionSchema(
            name=action_name,
            parameters=self._parse_parameters(parameters),
            precondition=_non_empty(fields.get(":precondition")),
            effect=_non_empty(fields.get(":effect")),
        )

    def _parse_derived(self, derived_def: List[SExpr]) -> DerivedSchema:
        if len(derived_def) != 2 or not isinstance(derived_def[0], list) or not derived_def[0]:
            raise MalformedInputError(f"Invalid derived predicate: {to_text(derived_def)}")
        head, body = derived_def
        return DerivedSchema(
            name=head[0],
            parameters=self._parse_parameters(head[1:]),
            body=body,
        )

    def _parse_axiom(self, axiom_def: List[SExpr], index: int) -> AxiomSchema:
        fields = self._parse_keyword_args(axiom_def)
        if ":implies" not in fields:
            raise MalformedInputError(f"Axiom {index} has no :implies")
        variables = fields.get(":vars", [])
        if not isinstance(variables, list):
            raise MalformedInputError(f"Invalid :vars for axiom {index}")
        return AxiomSchema(
            name=f"axiom-{index}",
            parameters=self._parse_parameters(variables),
            context=_non_empty(fields.get(":context")),
            implies=fields[":implies"],
        )


def _non_empty(expr: SExpr):
    """`()` stands for an empty precondition/effect."""
    if isinstance(expr, list) and len(expr) == 0:
        return None
    return expr
