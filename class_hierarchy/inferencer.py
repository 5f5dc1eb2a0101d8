"""
Subsumption queries over a loaded class hierarchy
"""
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, FrozenSet, Set

from class_hierarchy.graph import ClassHierarchy


class SubClassInferencer(ABC):
    """Answers "is-a" questions for type based scoring"""

    @abstractmethod
    def is_sub_class_of(self, class_a: str, class_b: str, reflexive: bool = True) -> bool:
        """
        Check whether class_a is a (direct or indirect) subclass of class_b

        Args:
            class_a: Candidate subclass URI
            class_b: Candidate super class URI
            reflexive: Whether a class counts as subclass of itself

        Returns:
            True if class_a is subsumed by class_b
        """
        pass

    @abstractmethod
    def infer_sub_classes(self, class_uri: str) -> Set[str]:
        """The class itself plus all of its direct and indirect subclasses"""
        pass

    @abstractmethod
    def infer_super_classes(self, class_uri: str) -> Set[str]:
        """The class itself plus all of its direct and indirect super classes"""
        pass


class SimpleSubClassInferencer(SubClassInferencer):
    """Breadth-first traversal of a frozen ClassHierarchy"""

    def __init__(self, hierarchy: ClassHierarchy):
        hierarchy.freeze()
        self.hierarchy = hierarchy

    @staticmethod
    def _closure(start: str, neighbours: Callable[[str], FrozenSet[str]]) -> Set[str]:
        visited = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbour in neighbours(current):
                if neighbour not in visited:
                    visited.add(neighbour)
                    queue.append(neighbour)
        return visited

    def is_sub_class_of(self, class_a: str, class_b: str, reflexive: bool = True) -> bool:
        if class_a is None or class_b is None:
            return False
        if class_a == class_b and reflexive:
            return True

        visited = set()
        queue = deque(self.hierarchy.direct_super_classes(class_a))
        while queue:
            current = queue.popleft()
            if current == class_b:
                return True
            if current in visited:
                continue
            visited.add(current)
            queue.extend(self.hierarchy.direct_super_classes(current) - visited)
        return False

    def infer_sub_classes(self, class_uri: str) -> Set[str]:
        return self._closure(class_uri, self.hierarchy.direct_sub_classes)

    def infer_super_classes(self, class_uri: str) -> Set[str]:
        return self._closure(class_uri, self.hierarchy.direct_super_classes)
