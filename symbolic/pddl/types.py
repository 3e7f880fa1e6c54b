from dataclasses import dataclass, field
from typing import Dict, List, Iterable, Tuple, Optional

from .ast import ROOT_TYPE


class TypeHierarchy:
    """Declared types with their parents; `object` is the implicit root."""

    def __init__(self, parents: Dict[str, str]):
        self.parents = dict(parents)
        self.parents.pop(ROOT_TYPE, None)

    def __contains__(self, type_name: str) -> bool:
        return type_name == ROOT_TYPE or type_name in self.parents

    def ancestors(self, type_name: str) -> List[str]:
        """Return [type_name, parent, ..., object], stopping on a cycle."""
        chain = [type_name]
        current = type_name
        while current in self.parents:
            current = self.parents[current]
            if current in chain:
                break
            chain.append(current)
        if chain[-1] != ROOT_TYPE:
            chain.append(ROOT_TYPE)
        return chain

    def find_cycle(self) -> Optional[List[str]]:
        """Return one cycle of the hierarchy, or None."""
        for start in self.parents:
            path = [start]
            current = start
            while current in self.parents:
                current = self.parents[current]
                if current == start:
                    return path + [start]
                if current in path:
                    break
                path.append(current)
        return None

    def is_subtype(self, type_name: str, ancestor: str) -> bool:
        return ancestor in self.ancestors(type_name)


@dataclass(frozen=True)
class Object:
    """A typed object. Identity is its name."""
    name: str
    type: str = field(default=ROOT_TYPE, compare=False)
    types: Tuple[str, ...] = field(default=(ROOT_TYPE,), compare=False, repr=False)

    @staticmethod
    def create(name: str, type_name: str, hierarchy: TypeHierarchy) -> "Object":
        return Object(name=name, type=type_name, types=tuple(hierarchy.ancestors(type_name)))

    def is_a(self, type_name: str) -> bool:
        """True if the object's type reaches `type_name` in the hierarchy."""
        return type_name in self.types

    def __str__(self):
        return self.name


class ObjectIndex:
    """
    type -> objects of that type (including every ancestor type).
    Lists keep object insertion order.
    """

    def __init__(self, objects: Iterable[Object] = ()):
        self.objects_of_type: Dict[str, List[Object]] = {}
        self.objects_by_name: Dict[str, Object] = {}
        for obj in objects:
            self.add_object(obj)

    def add_object(self, obj: Object) -> None:
        self.objects_by_name[obj.name] = obj
        for type_name in obj.types:
            self.objects_of_type.setdefault(type_name, []).append(obj)

    def lookup(self, type_name: str) -> Tuple[Object, ...]:
        """Objects satisfying `type_name`; empty when there are none."""
        return tuple(self.objects_of_type.get(type_name, ()))

    def find(self, name: str) -> Optional[Object]:
        return self.objects_by_name.get(name)

    @property
    def objects(self) -> List[Object]:
        return list(self.objects_by_name.values())

    def __len__(self):
        return len(self.objects_by_name)
