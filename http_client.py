"""
http_client.py - Shared aiohttp session handling for network strategies
"""
from typing import Optional

import aiohttp

from logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = "semantic-entity-resolution/1.0"


class HttpClient:
    """
    Lazily created aiohttp session with a bounded timeout per request.

    The session is created inside the running event loop on first use and
    shared by all concurrent calls of its owner. An injected session is
    used as is and never closed by this class.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={'User-Agent': self.user_agent}
            )
            self._owns_session = True
            logger.debug("Created HTTP session")
        return self._session

    async def close(self):
        """Close the session if it was created here"""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed HTTP session")
        if self._owns_session:
            self._session = None
