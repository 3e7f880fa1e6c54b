from typing import List, Any


class SymbolicError(Exception):
    """Base class for every error raised by this package."""


class MalformedInputError(SymbolicError):
    """The domain/problem source could not be read or parsed into an AST."""


class TypeCheckError(SymbolicError):
    """Raised from a failed validation report on request."""

    def __init__(self, diagnostics: List[Any]):
        self.diagnostics = list(diagnostics)
        lines = [str(d) for d in self.diagnostics]
        super().__init__("Type check failed:\n" + "\n".join(lines))


class UnsupportedFeatureError(SymbolicError):
    """A temporal, numeric, preference or constraint construct was evaluated."""

    def __init__(self, construct: str, text: str = ""):
        self.construct = construct
        self.text = text
        message = f"Unsupported PDDL construct '{construct}'"
        if text:
            message += f": {text}"
        super().__init__(message)


class InvalidActionCallError(SymbolicError):
    """Unknown action/predicate/object name or wrong argument count in text input."""


class InvalidArgumentTypeError(SymbolicError):
    """An argument object does not satisfy the declared parameter type."""
