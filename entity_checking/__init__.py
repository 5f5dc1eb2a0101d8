"""
Entity Existence Checking

Maps URI namespaces to checkers confirming that an entity exists and
records the results on the checked meanings.
"""

from entity_checking.base import EntityChecker
from entity_checking.manager import EntityCheckerManager
from entity_checking.http_checker import HttpBasedEntityChecker

__all__ = [
    'EntityChecker',
    'EntityCheckerManager',
    'HttpBasedEntityChecker'
]
