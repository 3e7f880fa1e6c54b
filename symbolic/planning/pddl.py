import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Set, Tuple, Union

from ..errors import InvalidActionCallError, MalformedInputError
from ..pddl.ast import DomainAST, ProblemAST
from ..pddl.domain_parser import DomainParser
from ..pddl.problem_parser import ProblemParser
from ..pddl.sexpr_parser import parse_sexpr
from ..pddl.tokenizer import tokenize
from ..pddl.typecheck import Diagnostic, TypeChecker, ValidationReport
from ..pddl.types import Object, ObjectIndex
from .actions import Action
from .axioms import Axiom, DerivedPredicate, apply_axioms
from .formula import Formula, evaluate, require_supported
from .state import Proposition, State
from .task import PlanningTask

logger = logging.getLogger(__name__)

StateLike = Union[State, Iterable[Proposition], Iterable[str]]


def _read(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedInputError(f"Unable to read PDDL file: {path}") from e


def parse_pddl_strings(domain_pddl: str, problem_pddl: str) -> Tuple[DomainAST, ProblemAST]:
    """Run the front end on PDDL source text."""
    domain = DomainParser(parse_sexpr(tokenize(domain_pddl))).parse()
    problem = ProblemParser(parse_sexpr(tokenize(problem_pddl))).parse()
    return domain, problem


def parse_pddl(domain_file: str, problem_file: str) -> Tuple[DomainAST, ProblemAST]:
    """Run the front end on a domain file and a problem file."""
    domain_pddl = _read(domain_file)
    problem_pddl = _read(problem_file)
    return parse_pddl_strings(domain_pddl, problem_pddl)


def apply(state: State, action: Action, arguments: Sequence[Object],
          axioms: Sequence[Axiom]) -> State:
    """Apply the action, then close the result under the axioms."""
    next_state = action.apply(state, arguments)
    apply_axioms(axioms, next_state)
    return next_state


def apply_in_place(action: Action, arguments: Sequence[Object],
                   axioms: Sequence[Axiom], state: State) -> bool:
    is_changed = action.apply_in_place(arguments, state)
    is_changed |= apply_axioms(axioms, state)
    return is_changed


class Pddl:
    """
    Query interface over a translated domain/problem pair.

    Every query accepts either a `State` or an iterable of proposition
    strings (`"on a b"`); text input gives text output.
    """

    def __init__(self, domain: DomainAST, problem: ProblemAST):
        self._domain = domain
        self._problem = problem
        self._task = PlanningTask.from_ast(domain, problem)
        logger.debug("Loaded %s", self)

    @classmethod
    def from_files(cls, domain_file: str | Path, problem_file: str | Path) -> "Pddl":
        return cls(*parse_pddl(str(domain_file), str(problem_file)))

    @classmethod
    def from_strings(cls, domain_pddl: str, problem_pddl: str) -> "Pddl":
        return cls(*parse_pddl_strings(domain_pddl, problem_pddl))

    # Properties

    @property
    def domain(self) -> DomainAST:
        return self._domain

    @property
    def problem(self) -> ProblemAST:
        return self._problem

    @property
    def task(self) -> PlanningTask:
        return self._task

    @property
    def name(self) -> str:
        return self._task.domain_name

    @property
    def objects(self) -> List[Object]:
        return list(self._task.objects)

    @property
    def object_map(self) -> ObjectIndex:
        return self._task.object_index

    @property
    def actions(self) -> List[Action]:
        return list(self._task.actions)

    @property
    def axioms(self) -> List[Axiom]:
        return list(self._task.axioms)

    @property
    def derived_predicates(self) -> List[DerivedPredicate]:
        return list(self._task.derived_predicates)

    @property
    def initial_state(self) -> State:
        return State(self._task.initial_state)

    @property
    def goal(self) -> Formula:
        return self._task.goal

    # Queries

    def type_check(self, verbose: bool = False) -> ValidationReport:
        return TypeChecker(self._domain, self._problem).check(verbose=verbose)

    def validate(self, verbose: bool = False) -> Tuple[bool, List[Diagnostic]]:
        """Type-check the domain and problem. Warnings are included only when verbose."""
        report = self.type_check(verbose)
        return report.ok, report.diagnostics

    def parse_state(self, str_state: Iterable[str]) -> State:
        return State.parse(self._task, str_state)

    def parse_action(self, action_call: str) -> Tuple[Action, Tuple[Object, ...]]:
        return Action.parse(self._task, action_call)

    def next_state(self, state: StateLike, action_call: str) -> State | Set[str]:
        """Successor of `state` under `action_call`, closed under the axioms."""
        action, arguments = self.parse_action(action_call)
        state, is_text = self._coerce(state)
        if not is_text:
            return apply(state, action, arguments, self._task.rules)

        # freshly parsed, safe to update in place
        apply_in_place(action, arguments, self._task.rules, state)
        return state.stringify()

    def is_valid_action(self, state: StateLike, action_call: str) -> bool:
        action, arguments = self.parse_action(action_call)
        return action.is_valid(self._as_state(state), arguments)

    def is_valid_tuple(self, state: StateLike, action_call: str,
                       next_state: StateLike) -> bool:
        """True if the action is valid in `state` and leads to `next_state`."""
        state = self._as_state(state)
        next_state = self._as_state(next_state)
        action, arguments = self.parse_action(action_call)
        return (action.is_valid(state, arguments)
                and apply(state, action, arguments, self._task.rules) == next_state)

    def is_goal_satisfied(self, state: StateLike) -> bool:
        require_supported(self._task.goal)
        return evaluate(self._task.goal, self._as_state(state), {}, self._task.object_index)

    def is_valid_plan(self, action_skeleton: Iterable[str]) -> bool:
        """
        Execute the plan from the initial state, failing on the first step
        whose precondition does not hold, then test the goal.
        """
        state = self.initial_state
        for step, action_call in enumerate(action_skeleton):
            action, arguments = self.parse_action(action_call)
            if not action.is_valid(state, arguments):
                logger.debug("Plan step %d '%s' is not valid", step, action_call)
                return False
            apply_in_place(action, arguments, self._task.rules, state)
        return self.is_goal_satisfied(state)

    def list_valid_arguments(self, state: StateLike,
                             action: Action | str) -> List[Tuple[Object, ...]] | List[List[str]]:
        """All argument tuples for which the action is valid, in enumeration order."""
        state, is_text = self._coerce(state)
        if isinstance(action, str):
            action = self._task.find_action(action)

        require_supported(action.precondition)
        generator = action.parameter_generator()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Enumerating %d candidate bindings for '%s'", generator.size, action.name)
        arguments = [args for args in generator if action.is_valid(state, args)]
        if is_text:
            return stringify_arguments(arguments)
        return arguments

    def list_valid_actions(self, state: StateLike) -> List[str]:
        state = self._as_state(state)
        actions = []
        for action in self._task.actions:
            for args in self.list_valid_arguments(state, action):
                actions.append(action.to_string(args))
        return actions

    def _coerce(self, state: StateLike) -> Tuple[State, bool]:
        """
        Normalise a query state. Returns the State and whether the caller
        passed text, in which case results are stringified.
        """
        if isinstance(state, State):
            return state, False
        if isinstance(state, str):
            raise InvalidActionCallError(f"Expected a collection of propositions, got the string '{state}'")
        items = list(state)
        if all(isinstance(item, str) for item in items):
            return self.parse_state(items), True
        if all(isinstance(item, Proposition) for item in items):
            return State(items), False
        raise InvalidActionCallError("A state must hold either Propositions or proposition strings")

    def _as_state(self, state: StateLike) -> State:
        return self._coerce(state)[0]

    def __str__(self):
        return (f"Pddl(domain={self._task.domain_name}, problem={self._task.problem_name}, "
                f"objects={len(self._task.objects)}, actions={len(self._task.actions)})")


def stringify_state(state: State) -> Set[str]:
    return state.stringify()


def stringify_actions(actions: Iterable[Action]) -> List[str]:
    return [action.name for action in actions]


def stringify_arguments(arguments: Iterable[Sequence[Object]]) -> List[List[str]]:
    return [[arg.name for arg in args] for args in arguments]


def stringify_objects(objects: Iterable[Object]) -> List[str]:
    return [obj.name for obj in objects]
