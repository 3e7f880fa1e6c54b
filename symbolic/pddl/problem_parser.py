from .ast import ProblemAST, Literal
from .domain_parser import parse_typed_list, find_define
from .sexpr_parser import SExpr, to_text
from .tokenizer import is_keyword
from ..errors import MalformedInputError
from typing import List


class ProblemParser:
    def __init__(self, sexprs: List[SExpr]):
        self.sexprs = sexprs

    def parse(self) -> ProblemAST:
        """
        Parse (define (problem ...) ...).
        Extracts :domain, :requirements, :objects, :init, :goal,
        :constraints and :metric. The goal stays a raw s-expression.
        """
        problem_expr = find_define(self.sexprs, "problem")
        header = problem_expr[1]
        if len(header) < 2 or not isinstance(header[1], str):
            raise MalformedInputError("Problem definition has no name")

        problem = ProblemAST(
            name=header[1],
            domain_name="unknown",
            requirements=[],
            objects={},
            init=[],
        )

        for item in problem_expr[2:]:
            if not isinstance(item, list) or len(item) == 0 or not isinstance(item[0], str):
                raise MalformedInputError(f"Unexpected problem element: {to_text(item)}")
            section = item[0].lower()
            if section == ":domain":
                if len(item) != 2 or not isinstance(item[1], str):
                    raise MalformedInputError(f"Invalid :domain entry: {to_text(item)}")
                problem.domain_name = item[1]
            elif section == ":requirements":
                problem.requirements = [r.lower() for r in item[1:] if isinstance(r, str)]
            elif section == ":objects":
                problem.objects.update(parse_typed_list(item[1:]))
            elif section == ":init":
                problem.init = self._parse_literals(item[1:])
            elif section == ":goal":
                if len(item) != 2:
                    raise MalformedInputError(f"Invalid :goal entry: {to_text(item)}")
                problem.goal = item[1]
            elif section == ":constraints":
                problem.constraints = item[1] if len(item) == 2 else ["and"] + item[1:]
            elif section == ":metric":
                problem.metric = item[1:]
            else:
                raise MalformedInputError(f"Unknown problem section '{item[0]}'")

        return problem

    def _parse_literals(self, literal_list: List[SExpr]) -> List[Literal]:
        """Parse the literal list of :init."""
        return [self._parse_single_literal(item) for item in literal_list]

    def _parse_single_literal(self, expr: SExpr) -> Literal:
        if not isinstance(expr, list) or len(expr) == 0:
            raise MalformedInputError(f"Invalid literal: {to_text(expr)}")

        negated = False
        if is_keyword(expr[0], "not"):
            if len(expr) != 2 or not isinstance(expr[1], list) or not expr[1]:
                raise MalformedInputError(f"Invalid negated literal: {to_text(expr)}")
            negated = True
            expr = expr[1]

        predicate = expr[0]
        if not isinstance(predicate, str):
            raise MalformedInputError(f"Invalid literal head: {to_text(expr)}")

        if any(isinstance(arg, list) for arg in expr[1:]):
            # (= (fuel truck1) 10)
            return Literal(predicate=predicate, args=[to_text(arg) for arg in expr[1:]],
                           negated=negated, numeric=True)

        return Literal(predicate=predicate, args=list(expr[1:]), negated=negated)
