"""
Base interface for knowledge base membership classifiers
"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from annotation_model import Meaning


class UriKBClassifier(ABC):
    """Decides whether URIs belong to one of the well-known knowledge bases"""

    @abstractmethod
    def is_kb_uri(self, uri: Optional[str]) -> bool:
        """
        Check a single URI

        Args:
            uri: Candidate URI, may be None

        Returns:
            True if the URI is part of a known KB
        """
        pass

    def contains_kb_uri(self, uris: Iterable[Optional[str]]) -> bool:
        """Check whether at least one of the given URIs is a KB URI"""
        if uris is None:
            return False
        return any(self.is_kb_uri(uri) for uri in uris)

    def is_known_kb(self, meaning: Optional[Meaning]) -> bool:
        """Check whether the equivalence set of a meaning touches a known KB"""
        if meaning is None:
            return False
        return self.contains_kb_uri(meaning.uris)
