"""
Wikipedia / DBpedia bridge

DBpedia resources are derived from Wikipedia articles and share their
titles, so both URIs can be translated into each other without any
request:

    http://dbpedia.org/resource/China    <-> http://en.wikipedia.org/wiki/China
    http://de.dbpedia.org/resource/China <-> http://de.wikipedia.org/wiki/China
"""
from typing import Dict, Iterable, List, Optional, Set

from logger import get_logger
from sameas.base import SameAsRetriever
from sameas.manager import DomainBasedSameAsRetrieverManager, extract_domain

logger = get_logger(__name__)

DBPEDIA_PATH = "/resource/"
WIKIPEDIA_PATH = "/wiki/"
DEFAULT_LANGUAGES = ("en", "de", "fr")


def dbpedia_domain(language: str) -> str:
    # The English edition has no language label
    return "dbpedia.org" if language == "en" else f"{language}.dbpedia.org"


def wikipedia_domain(language: str) -> str:
    return f"{language}.wikipedia.org"


class WikiDbPediaBridgingSameAsRetriever(SameAsRetriever):

    def __init__(self, languages: Optional[Iterable[str]] = None):
        languages = [lang.strip().lower() for lang in (languages or DEFAULT_LANGUAGES) if lang and lang.strip()]
        self.dbpedia_to_wikipedia: Dict[str, str] = {
            dbpedia_domain(language): wikipedia_domain(language) for language in languages
        }
        self.wikipedia_to_dbpedia: Dict[str, str] = {
            wiki: dbp for dbp, wiki in self.dbpedia_to_wikipedia.items()
        }

    def domains(self) -> List[str]:
        return list(self.dbpedia_to_wikipedia) + list(self.wikipedia_to_dbpedia)

    def add_to_manager(self, manager: DomainBasedSameAsRetrieverManager):
        """Register this retriever for every bridged domain at once"""
        for domain in self.domains():
            manager.add_domain_specific_retriever(domain, self)
        logger.info(f"Registered Wikipedia/DBpedia bridge for {len(self.domains())} domains")

    @staticmethod
    def _local_name(uri: str, path_prefix: str) -> Optional[str]:
        scheme_end = uri.find('://')
        if scheme_end < 0:
            return None
        slash = uri.find('/', scheme_end + 3)
        if slash < 0:
            return None
        tail = uri[slash:]
        if not tail.startswith(path_prefix):
            return None
        return tail[len(path_prefix):] or None

    def bridge(self, uri: str) -> Optional[str]:
        """Translate a URI into the other knowledge base"""
        domain = extract_domain(uri)
        if domain in self.dbpedia_to_wikipedia:
            name = self._local_name(uri, DBPEDIA_PATH)
            if name:
                return f"http://{self.dbpedia_to_wikipedia[domain]}{WIKIPEDIA_PATH}{name}"
        elif domain in self.wikipedia_to_dbpedia:
            name = self._local_name(uri, WIKIPEDIA_PATH)
            if name:
                return f"http://{self.wikipedia_to_dbpedia[domain]}{DBPEDIA_PATH}{name}"
        return None

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()
        result = {uri}
        bridged = self.bridge(uri)
        if bridged:
            result.add(bridged)
        return result
