"""
Wikipedia Provider

Resolves Wikipedia article URIs through the MediaWiki API. A URI of a
redirect page (e.g. ".../wiki/People's_Republic_of_China") is mapped to
the URI of the article it redirects to (".../wiki/China").

API Documentation: https://www.mediawiki.org/wiki/API:Query
"""
import asyncio
from typing import Any, Dict, Optional, Tuple
from urllib.parse import unquote, urlsplit

import aiohttp

from http_client import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, HttpClient
from logger import get_logger
from metrics import sameas_resolution_failures
from sameas.base import SingleUriSameAsRetriever

logger = get_logger(__name__)

WIKI_PATH_PREFIX = "/wiki/"
API_PATH = "/w/api.php"


def extract_title(uri: str) -> Optional[Tuple[str, str]]:
    """
    Split a Wikipedia article URI into domain and title

    Example:
        "http://en.wikipedia.org/wiki/New_York_City" -> ("en.wikipedia.org", "New York City")
    """
    try:
        parts = urlsplit(uri)
    except ValueError:
        return None
    if not parts.netloc or not parts.path.startswith(WIKI_PATH_PREFIX):
        return None
    title = unquote(parts.path[len(WIKI_PATH_PREFIX):]).replace('_', ' ').strip()
    if not title:
        return None
    return parts.netloc.lower(), title


def build_article_uri(domain: str, title: str) -> str:
    return f"http://{domain}{WIKI_PATH_PREFIX}{title.replace(' ', '_')}"


def parse_query_response(data: Dict[str, Any]) -> Optional[str]:
    """Return the title of the (redirect target) page or None if it is missing"""
    pages = (data or {}).get('query', {}).get('pages')
    if not pages:
        return None
    page = next(iter(pages.values())) if isinstance(pages, dict) else pages[0]
    if 'missing' in page or 'invalid' in page:
        return None
    return page.get('title')


class WikipediaApiBasedSingleUriSameAsRetriever(SingleUriSameAsRetriever):
    """Maps redirect article URIs to their target article"""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.client = HttpClient(timeout=timeout, user_agent=user_agent, session=session)

    async def _query_title(self, domain: str, title: str) -> Optional[str]:
        params = {
            'action': 'query',
            'format': 'json',
            'redirects': '1',
            'titles': title
        }
        async with self.client.session.get(f"https://{domain}{API_PATH}", params=params) as response:
            if response.status != 200:
                logger.debug(f"Wikipedia API of {domain} answered with status {response.status}")
                return None
            data = await response.json(content_type=None)
        return parse_query_response(data)

    async def retrieve_same_uri(self, uri: str) -> Optional[str]:
        extracted = extract_title(uri)
        if extracted is None:
            return None
        domain, title = extracted

        try:
            target_title = await self._query_title(domain, title)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            sameas_resolution_failures.labels(type(self).__name__).inc()
            logger.debug(f"Couldn't query Wikipedia API for {uri}: {type(e).__name__}: {e}")
            return None

        if not target_title or target_title == title:
            return None
        return build_article_uri(domain, target_title)

    async def close(self):
        await self.client.close()
