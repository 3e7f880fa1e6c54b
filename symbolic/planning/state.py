from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple, TYPE_CHECKING

from ..errors import InvalidActionCallError, InvalidArgumentTypeError
from ..pddl.types import Object, ObjectIndex

if TYPE_CHECKING:
    from .task import PlanningTask


def resolve_objects(index: ObjectIndex, names: Iterable[str]) -> Tuple[Object, ...]:
    """Look up objects by name, failing on unknown names."""
    objects = []
    for name in names:
        obj = index.find(name)
        if obj is None:
            raise InvalidActionCallError(f"Unknown object '{name}'")
        objects.append(obj)
    return tuple(objects)


@dataclass(frozen=True)
class Proposition:
    """A ground atom: predicate name applied to an ordered tuple of objects."""
    name: str
    arguments: Tuple[Object, ...] = ()

    @staticmethod
    def parse(task: "PlanningTask", text: str) -> "Proposition":
        """Parse `predicate arg1 ... argN`, checking name, arity and types."""
        tokens = text.split()
        if not tokens:
            raise InvalidActionCallError("Empty proposition")
        name, arg_names = tokens[0], tokens[1:]

        signature = task.signatures.get(name)
        if signature is None:
            raise InvalidActionCallError(f"Unknown predicate '{name}' in '{text}'")
        if len(arg_names) != len(signature):
            raise InvalidActionCallError(
                f"Predicate '{name}' takes {len(signature)} arguments, got {len(arg_names)}")

        arguments = resolve_objects(task.object_index, arg_names)
        for obj, type_name in zip(arguments, signature):
            if not obj.is_a(type_name):
                raise InvalidArgumentTypeError(
                    f"Object '{obj.name}' of type '{obj.type}' is not a '{type_name}' in '{text}'")
        return Proposition(name, arguments)

    def __str__(self):
        return " ".join([self.name] + [arg.name for arg in self.arguments])


class State(set):
    """
    A set of Propositions. Mutable so the in-place application variants can
    report changes; use `frozen()` when a hashable snapshot is needed.
    """

    @staticmethod
    def parse(task: "PlanningTask", str_state: Iterable[str]) -> "State":
        return State(Proposition.parse(task, text) for text in str_state)

    def contains(self, name: str, *arguments: Object) -> bool:
        return Proposition(name, tuple(arguments)) in self

    def copy(self) -> "State":
        return State(self)

    def frozen(self) -> frozenset:
        return frozenset(self)

    def stringify(self) -> Set[str]:
        return {str(prop) for prop in self}

    def sorted_strings(self) -> List[str]:
        return sorted(self.stringify())

    def __repr__(self):
        return f"State({self.sorted_strings()})"

    def __str__(self):
        return "{" + ", ".join(self.sorted_strings()) + "}"
