import logging
from dataclasses import dataclass, field
from typing import Sequence, Tuple

from ..pddl.types import ObjectIndex
from .effects import AddEffect, ConditionalEffect, Effect, ForallEffect, apply_effects_in_place
from .formula import Atom, Formula, Variable, require_supported
from .parameters import Parameter
from .state import State

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Axiom:
    """
    Add-only rule: for every binding of `parameters` under which `body`
    holds, every atom of `head` is added to the state.
    """
    name: str
    parameters: Tuple[Parameter, ...]
    body: Formula
    head: Tuple[Atom, ...]
    object_index: ObjectIndex = field(default_factory=ObjectIndex, compare=False, repr=False)
    effects: Tuple[Effect, ...] = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        adds = tuple(AddEffect(atom) for atom in self.head)
        effect = ForallEffect(self.parameters, (ConditionalEffect(self.body, adds),))
        object.__setattr__(self, "effects", (effect,))

    def apply_in_place(self, state: State) -> bool:
        """Add the head atoms for every satisfying binding. Returns True on change."""
        require_supported(self.body)
        return apply_effects_in_place(self.effects, state, {}, self.object_index)


@dataclass(frozen=True)
class DerivedPredicate(Axiom):
    """(:derived (name ?x ...) body)"""

    @staticmethod
    def create(name: str, parameters: Sequence[Parameter], body: Formula,
               object_index: ObjectIndex) -> "DerivedPredicate":
        parameters = tuple(parameters)
        head = Atom(name, tuple(Variable(p.name) for p in parameters))
        return DerivedPredicate(name=name, parameters=parameters, body=body,
                                head=(head,), object_index=object_index)


def apply_axioms(axioms: Sequence[Axiom], state: State) -> bool:
    """
    Sweep all axioms in declaration order until a full sweep adds nothing.

    Axioms only add atoms and the ground-atom universe is finite, so every
    sweep but the last grows the state and the loop terminates.
    """
    changed = False
    sweeps = 0
    while True:
        sweeps += 1
        sweep_changed = False
        for axiom in axioms:
            if axiom.apply_in_place(state):
                sweep_changed = True
        if not sweep_changed:
            break
        changed = True

    logger.debug("Axiom fixed point reached after %d sweeps (%d atoms)", sweeps, len(state))
    return changed
