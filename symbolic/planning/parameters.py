from dataclasses import dataclass
from itertools import product
from typing import Dict, Iterator, Sequence, Tuple

import numpy as np

from ..pddl.ast import ROOT_TYPE
from ..pddl.types import Object, ObjectIndex


@dataclass(frozen=True)
class Parameter:
    name: str               # includes the leading '?'
    type: str = ROOT_TYPE

    def __str__(self):
        return f"{self.name} - {self.type}"


Binding = Dict[str, Object]  # variable name -> object

_INDEX_MAX = np.iinfo(np.intp).max


def _unravel(i: int, shape: Sequence[int]) -> Tuple[int, ...]:
    """Mixed-radix split of a flat index, last dimension fastest."""
    indices = []
    for size in reversed(shape):
        i, j = divmod(i, size)
        indices.append(j)
    return tuple(reversed(indices))


class ParameterGenerator:
    """
    Lazy cartesian product of the typed domains of a parameter list.

    Iteration order is the product in declaration order with the leftmost
    parameter varying slowest. Every `iter()` starts a fresh traversal, and
    only the per-parameter domains are held in memory.
    """

    def __init__(self, index: ObjectIndex, parameters: Sequence[Parameter]):
        self.parameters = tuple(parameters)
        self.domains = tuple(index.lookup(param.type) for param in self.parameters)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(len(domain) for domain in self.domains)

    def __iter__(self) -> Iterator[Tuple[Object, ...]]:
        return product(*self.domains)

    @property
    def size(self) -> int:
        """Exact number of argument tuples, also past 2**63."""
        if not self.domains:
            return 1
        return int(np.prod(self.shape, dtype=object))

    def __len__(self) -> int:
        # len() itself is limited to sys.maxsize; use `size` for huge products
        return self.size

    def __getitem__(self, i: int) -> Tuple[Object, ...]:
        """The i-th argument tuple in iteration order."""
        size = self.size
        if i < 0:
            i += size
        if not 0 <= i < size:
            raise IndexError(f"ParameterGenerator index {i} out of range for size {size}")
        if not self.domains:
            return ()
        if size <= _INDEX_MAX:
            indices = np.unravel_index(i, self.shape)
        else:
            indices = _unravel(i, self.shape)
        return tuple(domain[int(j)] for domain, j in zip(self.domains, indices))

    def bindings(self, base: Binding | None = None) -> Iterator[Binding]:
        """Yield `base` extended with each argument tuple."""
        names = [param.name for param in self.parameters]
        for args in self:
            binding = dict(base) if base else {}
            binding.update(zip(names, args))
            yield binding
