"""
Base classes and interfaces for same-as retrievers
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set


class SameAsRetriever(ABC):
    """
    Base interface for all same-as retrievers

    Every retriever, including decorators wrapping other retrievers, shares
    the same contract: ``retrieve_same_uris`` returns the URIs considered
    equivalent to the given one. The result always contains the URI itself
    and a failure never propagates to the caller.
    """

    @abstractmethod
    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        """
        Retrieve URIs equivalent to the given URI

        Args:
            uri: URI to resolve

        Returns:
            Set containing the URI and its equivalents, empty for a missing URI
        """
        pass

    async def retrieve_same_uris_for_all(self, uris: Iterable[Optional[str]]) -> Set[str]:
        """Union of the same-as sets of several URIs"""
        uris = [uri for uri in uris if uri]
        results = await asyncio.gather(*(self.retrieve_same_uris(uri) for uri in uris))
        merged: Set[str] = set()
        for result in results:
            merged.update(result)
        return merged

    async def add_same_uris(self, uris: Set[str]) -> None:
        """Grow the given (mutable) set with the equivalents of its members"""
        uris.update(await self.retrieve_same_uris_for_all(list(uris)))

    async def close(self):
        """Cleanup resources"""
        pass


class SingleUriSameAsRetriever(SameAsRetriever):
    """Retriever finding at most one equivalent URI per request"""

    @abstractmethod
    async def retrieve_same_uri(self, uri: str) -> Optional[str]:
        """
        Retrieve a single equivalent URI

        Returns:
            The equivalent URI or None if there is none
        """
        pass

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()
        result = {uri}
        same_uri = await self.retrieve_same_uri(uri)
        if same_uri:
            result.add(same_uri)
        return result


class MultipleSameAsRetriever(SameAsRetriever):
    """Merges the results of several retrievers registered for one domain"""

    def __init__(self, *retrievers: SameAsRetriever):
        self.retrievers = list(retrievers)

    def add_retriever(self, retriever: SameAsRetriever):
        if retriever not in self.retrievers:
            self.retrievers.append(retriever)

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()
        results = await asyncio.gather(*(r.retrieve_same_uris(uri) for r in self.retrievers))
        merged = {uri}
        for result in results:
            merged.update(result)
        return merged

    async def close(self):
        for retriever in self.retrievers:
            await retriever.close()


class SameAsRetrieverDecorator(SameAsRetriever):
    """Retriever adding behaviour around a wrapped retriever"""

    def __init__(self, decorated: SameAsRetriever):
        self.decorated = decorated

    async def close(self):
        await self.decorated.close()
