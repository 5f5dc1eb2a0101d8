"""
Domain based dispatch of same-as retrieval

Selects the retriever registered for the authority of a URI and falls back
to a single static retriever for every other domain.
"""
from typing import Dict, List, Optional, Set
from urllib.parse import urlsplit

from metrics import sameas_resolution_failures
from sameas.base import MultipleSameAsRetriever, SameAsRetriever
from logger import get_logger

logger = get_logger(__name__)


def extract_domain(uri: Optional[str]) -> Optional[str]:
    """
    Extract the normalized authority of a URI

    Example:
        "http://en.wikipedia.org/wiki/China" -> "en.wikipedia.org"
    """
    if not uri or '://' not in uri:
        return None
    try:
        netloc = urlsplit(uri).netloc
    except ValueError:
        return None
    return netloc.lower() or None


def normalize_domain(domain: str) -> str:
    """Accept bare domains as well as URLs when registering a retriever"""
    domain = domain.strip()
    if '://' in domain:
        return extract_domain(domain) or domain.lower()
    return domain.split('/', 1)[0].lower()


class DomainBasedSameAsRetrieverManager(SameAsRetriever):
    """Dispatches each URI to the retriever registered for its domain"""

    def __init__(self):
        self.domain_retrievers: Dict[str, SameAsRetriever] = {}
        self.static_retriever: Optional[SameAsRetriever] = None

    def add_domain_specific_retriever(self, domain: str, retriever: SameAsRetriever):
        """
        Register a retriever for a domain

        A second retriever registered for the same domain is combined with
        the first one, both results are merged.
        """
        key = normalize_domain(domain)
        existing = self.domain_retrievers.get(key)
        if existing is None or existing is retriever:
            self.domain_retrievers[key] = retriever
        elif isinstance(existing, MultipleSameAsRetriever):
            existing.add_retriever(retriever)
        else:
            self.domain_retrievers[key] = MultipleSameAsRetriever(existing, retriever)
        logger.debug(f"Registered {type(retriever).__name__} for domain {key}")

    def add_static_retriever(self, retriever: SameAsRetriever):
        """Set the retriever used for URIs of unregistered domains"""
        if self.static_retriever is not None:
            logger.warning(
                f"Replacing static same-as retriever {type(self.static_retriever).__name__} "
                f"with {type(retriever).__name__}"
            )
        self.static_retriever = retriever

    def get_retriever(self, uri: str) -> Optional[SameAsRetriever]:
        domain = extract_domain(uri)
        if domain is not None and domain in self.domain_retrievers:
            return self.domain_retrievers[domain]
        return self.static_retriever

    def registered_domains(self) -> List[str]:
        return sorted(self.domain_retrievers)

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()

        retriever = self.get_retriever(uri)
        if retriever is None:
            return {uri}

        try:
            result = await retriever.retrieve_same_uris(uri)
        except Exception as e:
            sameas_resolution_failures.labels(type(retriever).__name__).inc()
            logger.debug(f"Same-as retrieval for {uri} failed with {type(retriever).__name__}: {e}")
            return {uri}

        result = set(result) if result else set()
        result.add(uri)
        return result

    async def close(self):
        retrievers = list(self.domain_retrievers.values())
        if self.static_retriever is not None:
            retrievers.append(self.static_retriever)
        closed = set()
        for retriever in retrievers:
            if id(retriever) in closed:
                continue
            closed.add(id(retriever))
            try:
                await retriever.close()
            except Exception as e:
                logger.error(f"Error closing same-as retriever {type(retriever).__name__}: {e}")
