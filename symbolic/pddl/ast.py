from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

ROOT_TYPE = "object"


@dataclass
class TypedVar:
    name: str
    type: str = ROOT_TYPE


@dataclass
class PredicateSchema:
    name: str
    parameters: List[TypedVar]


@dataclass
class Literal:
    predicate: str
    args: List[str]
    negated: bool = False
    numeric: bool = False  # (= (f ...) n) in :init

    def __str__(self):
        text = " ".join([self.predicate] + self.args)
        return f"(not ({text}))" if self.negated else f"({text})"


@dataclass
class ActionSchema:
    name: str
    parameters: List[TypedVar]
    precondition: Any  # raw s-expression, None when absent
    effect: Any        # raw s-expression, None when absent


@dataclass
class DerivedSchema:
    """(:derived (head ?x - t ...) body)"""
    name: str
    parameters: List[TypedVar]
    body: Any


@dataclass
class AxiomSchema:
    """(:axiom :vars (...) :context body :implies atoms)"""
    name: str
    parameters: List[TypedVar]
    context: Any
    implies: Any


@dataclass
class DomainAST:
    name: str
    requirements: List[str]
    types: Dict[str, str]                 # type -> parent type
    constants: Dict[str, str]             # constant -> type
    predicates: Dict[str, PredicateSchema]
    actions: Dict[str, ActionSchema]
    derived: List[DerivedSchema] = field(default_factory=list)
    axioms: List[AxiomSchema] = field(default_factory=list)
    functions: List[Any] = field(default_factory=list)


@dataclass
class ProblemAST:
    name: str
    domain_name: str
    requirements: List[str]
    objects: Dict[str, str]     # obj_name -> type_name
    init: List[Literal]
    goal: Any = None
    constraints: Any = None
    metric: Optional[Any] = None
