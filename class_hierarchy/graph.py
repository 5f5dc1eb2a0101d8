"""
Directed class graph built from subclass statements
"""
from typing import Dict, FrozenSet, Iterator, Set


class ClassHierarchy:
    """
    Adjacency sets keyed by class URI in both directions.

    Filled once during startup, then frozen. Adding the same edge twice has
    no effect.
    """

    def __init__(self):
        self._super_classes: Dict[str, Set[str]] = {}
        self._sub_classes: Dict[str, Set[str]] = {}
        self._frozen = False

    def _check_writable(self):
        if self._frozen:
            raise RuntimeError("Class hierarchy is frozen and can not be modified")

    def add_class(self, class_uri: str) -> None:
        self._check_writable()
        self._super_classes.setdefault(class_uri, set())
        self._sub_classes.setdefault(class_uri, set())

    def add_sub_class_of(self, sub_class: str, super_class: str) -> None:
        """Add the edge sub_class -> super_class"""
        self.add_class(sub_class)
        self.add_class(super_class)
        self._super_classes[sub_class].add(super_class)
        self._sub_classes[super_class].add(sub_class)

    def add_equivalent_classes(self, class_a: str, class_b: str) -> None:
        """Equivalent classes are subclasses of each other"""
        self.add_sub_class_of(class_a, class_b)
        self.add_sub_class_of(class_b, class_a)

    def merge(self, other: 'ClassHierarchy') -> None:
        for class_uri in other.classes():
            self.add_class(class_uri)
            for super_class in other.direct_super_classes(class_uri):
                self.add_sub_class_of(class_uri, super_class)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def direct_super_classes(self, class_uri: str) -> FrozenSet[str]:
        return frozenset(self._super_classes.get(class_uri, ()))

    def direct_sub_classes(self, class_uri: str) -> FrozenSet[str]:
        return frozenset(self._sub_classes.get(class_uri, ()))

    def classes(self) -> Iterator[str]:
        return iter(self._super_classes)

    def edge_count(self) -> int:
        return sum(len(supers) for supers in self._super_classes.values())

    def __contains__(self, class_uri: str) -> bool:
        return class_uri in self._super_classes

    def __len__(self) -> int:
        return len(self._super_classes)
