from dataclasses import dataclass, field
from typing import Sequence, Tuple, TYPE_CHECKING

from ..errors import InvalidActionCallError, InvalidArgumentTypeError
from ..pddl.types import Object, ObjectIndex
from .effects import Effect, apply_effects, apply_effects_in_place, check_effects
from .formula import Formula, TRUE, evaluate, require_supported
from .parameters import Binding, Parameter, ParameterGenerator
from .state import State, resolve_objects

if TYPE_CHECKING:
    from .task import PlanningTask


@dataclass(frozen=True)
class Action:
    name: str
    parameters: Tuple[Parameter, ...]
    precondition: Formula = TRUE
    effects: Tuple[Effect, ...] = ()
    object_index: ObjectIndex = field(default_factory=ObjectIndex, compare=False, repr=False)

    @staticmethod
    def parse(task: "PlanningTask", action_call: str) -> Tuple["Action", Tuple[Object, ...]]:
        """Parse `action_name arg1 ... argN` into the action and its arguments."""
        tokens = action_call.split()
        if not tokens:
            raise InvalidActionCallError("Empty action call")
        action = task.find_action(tokens[0])
        arguments = resolve_objects(task.object_index, tokens[1:])
        action.bind(arguments)
        return action, arguments

    def bind(self, arguments: Sequence[Object]) -> Binding:
        """Map parameter names to arguments, checking arity and types."""
        if len(arguments) != len(self.parameters):
            raise InvalidActionCallError(
                f"Action '{self.name}' takes {len(self.parameters)} arguments, got {len(arguments)}")
        for param, arg in zip(self.parameters, arguments):
            if not arg.is_a(param.type):
                raise InvalidArgumentTypeError(
                    f"Argument '{arg.name}' of type '{arg.type}' does not satisfy "
                    f"parameter {param.name} - {param.type} of action '{self.name}'")
        return {param.name: arg for param, arg in zip(self.parameters, arguments)}

    def is_valid(self, state: State, arguments: Sequence[Object]) -> bool:
        """Evaluate the precondition for these arguments. No side effects."""
        binding = self.bind(arguments)
        require_supported(self.precondition)
        return evaluate(self.precondition, state, binding, self.object_index)

    def apply(self, state: State, arguments: Sequence[Object]) -> State:
        """Return the successor state without checking the precondition."""
        binding = self.bind(arguments)
        check_effects(self.effects)
        return apply_effects(self.effects, state, binding, self.object_index)

    def apply_in_place(self, arguments: Sequence[Object], state: State) -> bool:
        binding = self.bind(arguments)
        check_effects(self.effects)
        return apply_effects_in_place(self.effects, state, binding, self.object_index)

    def parameter_generator(self) -> ParameterGenerator:
        return ParameterGenerator(self.object_index, self.parameters)

    def to_string(self, arguments: Sequence[Object]) -> str:
        return " ".join([self.name] + [arg.name for arg in arguments])

    def __str__(self):
        params = " ".join(str(p) for p in self.parameters)
        return f"{self.name}({params})"
