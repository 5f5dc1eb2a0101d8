"""
Transitive same-as crawling

If A is the same as B and B is the same as C, resolving A should yield C as
well. The decorator re-resolves newly discovered URIs level by level until
nothing new shows up or one of the caps is reached, so cyclic same-as
graphs terminate.
"""
import asyncio
from typing import Optional, Set

from sameas.base import SameAsRetriever, SameAsRetrieverDecorator
from logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_URIS = 100


class CrawlingSameAsRetrieverDecorator(SameAsRetrieverDecorator):

    def __init__(
        self,
        decorated: SameAsRetriever,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_uris: int = DEFAULT_MAX_URIS
    ):
        super().__init__(decorated)
        self.max_depth = max(1, max_depth)
        self.max_uris = max(1, max_uris)

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()

        result = {uri}
        frontier = [uri]
        depth = 0

        while frontier and depth < self.max_depth and len(result) < self.max_uris:
            level_results = await asyncio.gather(
                *(self.decorated.retrieve_same_uris(current) for current in frontier)
            )
            depth += 1

            next_frontier = []
            discovered = (same_uri for same_uris in level_results for same_uri in same_uris or ())
            for same_uri in discovered:
                # max_uris bounds the result, URIs beyond it are dropped
                if len(result) >= self.max_uris:
                    break
                if same_uri and same_uri not in result:
                    result.add(same_uri)
                    next_frontier.append(same_uri)

            frontier = next_frontier

        if frontier:
            logger.debug(
                f"Stopped crawling same-as links of {uri} at depth {depth} with {len(result)} URIs"
            )

        return result
