"""
Linked data based same-as retrieval

Dereferences a URI with RDF content negotiation and reads the owl:sameAs
statements about it. Used for domains publishing linked data (e.g. DBpedia
language editions) that are listed in the configuration.
"""
import asyncio
from typing import Dict, Optional, Set

import aiohttp
import rdflib
from rdflib import OWL, URIRef

from circuit_breaker import CircuitBreaker, CircuitBreakerError
from exceptions import ResolutionFailure
from http_client import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, HttpClient
from logger import get_logger
from metrics import sameas_resolution_failures
from sameas.base import SameAsRetriever
from sameas.manager import extract_domain

logger = get_logger(__name__)

ACCEPT_HEADER = (
    "application/rdf+xml, text/turtle;q=0.9, application/n-triples;q=0.8, "
    "application/ld+json;q=0.7, text/n3;q=0.6"
)

CONTENT_TYPE_FORMATS = {
    'application/rdf+xml': 'xml',
    'application/xml': 'xml',
    'text/xml': 'xml',
    'text/turtle': 'turtle',
    'application/x-turtle': 'turtle',
    'application/n-triples': 'nt',
    'text/plain': 'nt',
    'application/ld+json': 'json-ld',
    'application/json': 'json-ld',
    'text/n3': 'n3',
    'text/rdf+n3': 'n3',
}


def parse_same_uris(uri: str, body: str, content_type: str) -> Set[str]:
    """
    Extract the URIs linked to ``uri`` via owl:sameAs in either direction

    Raises:
        ResolutionFailure: If the content type is not RDF or the body can not be parsed
    """
    media_type = content_type.split(';', 1)[0].strip().lower()
    rdf_format = CONTENT_TYPE_FORMATS.get(media_type)
    if rdf_format is None:
        raise ResolutionFailure(f"Unsupported content type \"{content_type}\"", uri=uri)

    graph = rdflib.Graph()
    try:
        graph.parse(data=body, format=rdf_format, publicID=uri)
    except Exception as e:
        raise ResolutionFailure(f"Couldn't parse {rdf_format} response", uri=uri, original_error=e)

    resource = URIRef(uri)
    same_uris = set()
    for same in graph.objects(resource, OWL.sameAs):
        if isinstance(same, URIRef):
            same_uris.add(str(same))
    for same in graph.subjects(OWL.sameAs, resource):
        if isinstance(same, URIRef):
            same_uris.add(str(same))
    return same_uris


class HTTPBasedSameAsRetriever(SameAsRetriever):
    """owl:sameAs retrieval through HTTP dereferencing"""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.client = HttpClient(timeout=timeout, user_agent=user_agent, session=session)
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._breakers: Dict[str, CircuitBreaker] = {}

    def _get_breaker(self, domain: str) -> CircuitBreaker:
        breaker = self._breakers.get(domain)
        if breaker is None:
            breaker = CircuitBreaker(
                name=f"sameas:{domain}",
                failure_threshold=self.failure_threshold,
                recovery_timeout=self.recovery_timeout,
                expected_exception=(aiohttp.ClientError, asyncio.TimeoutError)
            )
            self._breakers[domain] = breaker
        return breaker

    async def _request_same_uris(self, uri: str) -> Set[str]:
        async with self.client.session.get(
            uri,
            headers={'Accept': ACCEPT_HEADER},
            allow_redirects=True
        ) as response:
            if response.status != 200:
                raise ResolutionFailure(f"Got HTTP status {response.status}", uri=uri)
            content_type = response.headers.get('Content-Type', '')
            body = await response.text()

        return parse_same_uris(uri, body, content_type)

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()

        result = {uri}
        breaker = self._get_breaker(extract_domain(uri) or 'unknown')
        try:
            result.update(await breaker.call(self._request_same_uris, uri))
        except CircuitBreakerError as e:
            sameas_resolution_failures.labels(type(self).__name__).inc()
            logger.debug(f"Skipping same-as retrieval for {uri}: {e}")
        except (aiohttp.ClientError, asyncio.TimeoutError, ResolutionFailure) as e:
            sameas_resolution_failures.labels(type(self).__name__).inc()
            logger.debug(f"Couldn't retrieve same-as links of {uri}: {type(e).__name__}: {e}")

        return result

    async def close(self):
        await self.client.close()
