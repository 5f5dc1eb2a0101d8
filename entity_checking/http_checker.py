"""
HTTP based entity existence checking

An entity of a linked data namespace exists if its URI can be dereferenced.
"""
import asyncio
from collections import OrderedDict
from typing import Optional

import aiohttp

from entity_checking.base import EntityChecker
from http_client import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, HttpClient
from logger import get_logger

logger = get_logger(__name__)

MISSING_STATUSES = frozenset({404, 410})
DEFAULT_RESULT_CACHE_SIZE = 10000


class HttpBasedEntityChecker(EntityChecker):
    """
    Sends a HEAD request (following redirects) for a URI:
    - 2xx/3xx: the entity exists
    - 404/410: the entity does not exist
    - anything else, timeouts and transport errors: inconclusive

    Conclusive results are kept in an LRU map.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        cache_size: int = DEFAULT_RESULT_CACHE_SIZE,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.client = HttpClient(timeout=timeout, user_agent=user_agent, session=session)
        self.cache_size = cache_size
        self._results: OrderedDict = OrderedDict()

    def _remember(self, uri: str, exists: bool):
        self._results[uri] = exists
        self._results.move_to_end(uri)
        if len(self._results) > self.cache_size:
            self._results.popitem(last=False)

    async def entity_exists(self, uri: str) -> Optional[bool]:
        if uri in self._results:
            self._results.move_to_end(uri)
            return self._results[uri]

        try:
            async with self.client.session.head(uri, allow_redirects=True) as response:
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Couldn't check existence of {uri}: {type(e).__name__}: {e}")
            return None

        if 200 <= status < 400:
            exists = True
        elif status in MISSING_STATUSES:
            exists = False
        else:
            logger.debug(f"Inconclusive HTTP status {status} while checking {uri}")
            return None

        self._remember(uri, exists)
        return exists

    async def close(self):
        await self.client.close()
