"""
Namespace based dispatch of entity existence checks
"""
import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

from annotation_model import Meaning
from entity_checking.base import EntityChecker
from logger import get_logger
from metrics import entity_checks

logger = get_logger(__name__)


class EntityCheckerManager:
    """
    Maps URI namespaces to checkers and marks meanings with the results.

    URIs outside of every registered namespace stay unverified.
    """

    def __init__(self):
        self.checkers: Dict[str, EntityChecker] = {}

    def register_entity_checker(self, namespace: str, checker: EntityChecker):
        """Register a (possibly shared) checker for a namespace"""
        namespace = namespace.strip()
        if not namespace:
            logger.warning("Ignoring entity checker registration for an empty namespace")
            return
        self.checkers[namespace] = checker
        logger.debug(f"Registered {type(checker).__name__} for namespace {namespace}")

    def get_checker(self, uri: str) -> Optional[EntityChecker]:
        """Select the checker of the longest namespace the URI starts with"""
        best_namespace = None
        for namespace in self.checkers:
            if uri.startswith(namespace) and (best_namespace is None or len(namespace) > len(best_namespace)):
                best_namespace = namespace
        return self.checkers.get(best_namespace) if best_namespace is not None else None

    async def _check_uri(self, meaning: Meaning, uri: str, checker: EntityChecker):
        try:
            exists = await checker.entity_exists(uri)
        except Exception as e:
            logger.debug(f"Entity check for {uri} failed: {type(e).__name__}: {e}")
            exists = None

        if exists is None:
            entity_checks.labels('unknown').inc()
            return
        entity_checks.labels('exists' if exists else 'missing').inc()
        meaning.mark_checked(uri, exists)

    async def check_meaning(self, meaning: Meaning):
        await self.check_meanings([meaning])

    async def check_meanings(self, meanings: Iterable[Optional[Meaning]]):
        """Check every URI of every meaning whose namespace has a checker"""
        checks: List[Tuple[Meaning, str, EntityChecker]] = []
        for meaning in meanings:
            if meaning is None:
                continue
            for uri in list(meaning.uris):
                checker = self.get_checker(uri)
                if checker is not None:
                    checks.append((meaning, uri, checker))

        if checks:
            await asyncio.gather(*(self._check_uri(m, uri, checker) for m, uri, checker in checks))

    async def close(self):
        closed = set()
        for checker in self.checkers.values():
            if id(checker) in closed:
                continue
            closed.add(id(checker))
            try:
                await checker.close()
            except Exception as e:
                logger.error(f"Error closing entity checker {type(checker).__name__}: {e}")
