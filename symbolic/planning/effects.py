from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, Set, Tuple, Union

from ..errors import UnsupportedFeatureError
from ..pddl.types import ObjectIndex
from .formula import Atom, Formula, evaluate, find_unsupported
from .parameters import Binding, Parameter, ParameterGenerator
from .state import Proposition, State


class EffectKind(Enum):
    ADD = "add"
    DELETE = "delete"
    WHEN = "when"
    FORALL = "forall"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class AddEffect:
    kind: ClassVar[EffectKind] = EffectKind.ADD
    atom: Atom


@dataclass(frozen=True)
class DeleteEffect:
    kind: ClassVar[EffectKind] = EffectKind.DELETE
    atom: Atom


@dataclass(frozen=True)
class ConditionalEffect:
    """when <condition> then <effects>"""
    kind: ClassVar[EffectKind] = EffectKind.WHEN
    condition: Formula
    effects: Tuple["Effect", ...]


@dataclass(frozen=True)
class ForallEffect:
    kind: ClassVar[EffectKind] = EffectKind.FORALL
    parameters: Tuple[Parameter, ...]
    effects: Tuple["Effect", ...]


@dataclass(frozen=True)
class UnsupportedEffect:
    kind: ClassVar[EffectKind] = EffectKind.UNSUPPORTED
    construct: str
    text: str = ""


Effect = Union[AddEffect, DeleteEffect, ConditionalEffect, ForallEffect, UnsupportedEffect]


def check_effects(effects: Iterable[Effect]) -> None:
    """Raise UnsupportedFeatureError if any effect or guard is unsupported."""
    for effect in effects:
        if effect.kind is EffectKind.UNSUPPORTED:
            raise UnsupportedFeatureError(effect.construct, effect.text)
        if effect.kind is EffectKind.WHEN:
            unsupported = find_unsupported(effect.condition)
            if unsupported is not None:
                raise UnsupportedFeatureError(unsupported.construct, unsupported.text)
        if effect.kind in (EffectKind.WHEN, EffectKind.FORALL):
            check_effects(effect.effects)


def collect_effects(effects: Iterable[Effect], state: State, binding: Binding,
                    index: ObjectIndex, adds: Set[Proposition], deletes: Set[Proposition]) -> None:
    """
    Walk an effect tree, filling the add and delete sets.
    Conditions are evaluated against `state`, which callers keep unmodified
    until the walk is complete.
    """
    for effect in effects:
        _COLLECTORS[effect.kind](effect, state, binding, index, adds, deletes)


def _collect_add(effect: AddEffect, state, binding, index, adds, deletes):
    adds.add(effect.atom.ground(binding))


def _collect_delete(effect: DeleteEffect, state, binding, index, adds, deletes):
    deletes.add(effect.atom.ground(binding))


def _collect_when(effect: ConditionalEffect, state, binding, index, adds, deletes):
    if evaluate(effect.condition, state, binding, index):
        collect_effects(effect.effects, state, binding, index, adds, deletes)


def _collect_forall(effect: ForallEffect, state, binding, index, adds, deletes):
    generator = ParameterGenerator(index, effect.parameters)
    for b in generator.bindings(binding):
        collect_effects(effect.effects, state, b, index, adds, deletes)


def _collect_unsupported(effect: UnsupportedEffect, state, binding, index, adds, deletes):
    raise UnsupportedFeatureError(effect.construct, effect.text)


_COLLECTORS = {
    EffectKind.ADD: _collect_add,
    EffectKind.DELETE: _collect_delete,
    EffectKind.WHEN: _collect_when,
    EffectKind.FORALL: _collect_forall,
    EffectKind.UNSUPPORTED: _collect_unsupported,
}


def apply_effects(effects: Iterable[Effect], state: State, binding: Binding,
                  index: ObjectIndex) -> State:
    """(state - deletes) | adds; an atom in both sets ends up present."""
    adds: Set[Proposition] = set()
    deletes: Set[Proposition] = set()
    collect_effects(effects, state, binding, index, adds, deletes)
    next_state = State(state - deletes)
    next_state |= adds
    return next_state


def apply_effects_in_place(effects: Iterable[Effect], state: State, binding: Binding,
                           index: ObjectIndex) -> bool:
    """Apply effects to `state` directly. Returns True if the set changed."""
    adds: Set[Proposition] = set()
    deletes: Set[Proposition] = set()
    collect_effects(effects, state, binding, index, adds, deletes)

    removed = (deletes - adds) & state
    added = adds - state
    state -= removed
    state |= added
    return bool(removed or added)
