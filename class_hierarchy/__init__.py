"""
Class Hierarchy Subsumption

Loads class/subclass statements from RDF files into one directed graph and
answers transitive "is subclass of" queries.
"""

from class_hierarchy.graph import ClassHierarchy
from class_hierarchy.loader import ClassHierarchyLoader, load_class_hierarchies
from class_hierarchy.inferencer import SubClassInferencer, SimpleSubClassInferencer

__all__ = [
    'ClassHierarchy',
    'ClassHierarchyLoader',
    'load_class_hierarchies',
    'SubClassInferencer',
    'SimpleSubClassInferencer'
]
