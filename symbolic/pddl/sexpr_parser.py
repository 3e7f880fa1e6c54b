from typing import List, Union

from ..errors import MalformedInputError

SExpr = Union[str, List["SExpr"]]


def parse_sexpr(tokens: List[str]) -> List[SExpr]:
    """
    Build the list of top-level s-expressions from a token list.
    e.g. ['(', 'define', ..., ')'] -> [['define', ...]]
    """
    result = []
    i = 0

    while i < len(tokens):
        expr, i = _parse_single_expr(tokens, i)
        result.append(expr)

    return result


def _parse_single_expr(tokens: List[str], start: int) -> tuple[SExpr, int]:
    """Parse one s-expression and return it with the index that follows it."""
    token = tokens[start]

    if token == '(':
        expr_list = []
        i = start + 1

        while i < len(tokens) and tokens[i] != ')':
            sub_expr, i = _parse_single_expr(tokens, i)
            expr_list.append(sub_expr)

        if i >= len(tokens):
            raise MalformedInputError("Unmatched opening parenthesis")

        return expr_list, i + 1

    elif token == ')':
        raise MalformedInputError("Unexpected closing parenthesis")

    else:
        return token, start + 1


def to_text(expr: SExpr) -> str:
    """Render an s-expression back to PDDL text (used in error messages)."""
    if isinstance(expr, list):
        return "(" + " ".join(to_text(e) for e in expr) + ")"
    return expr
