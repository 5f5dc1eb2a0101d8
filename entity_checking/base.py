"""
Base interface for entity existence checkers
"""
from abc import ABC, abstractmethod
from typing import Optional


class EntityChecker(ABC):
    """Confirms that a URI denotes a real, dereferenceable entity"""

    @abstractmethod
    async def entity_exists(self, uri: str) -> Optional[bool]:
        """
        Check whether the entity exists

        Args:
            uri: URI to check

        Returns:
            True or False if the check succeeded, None if it was inconclusive
        """
        pass

    async def close(self):
        """Cleanup resources"""
        pass
