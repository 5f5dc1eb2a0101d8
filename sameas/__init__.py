"""
Same-As Resolution

This package provides:
- The retriever interface shared by strategies and decorators
- Domain based dispatch to knowledge base specific strategies
- Transitive crawling of same-as links
- File based and in-memory caching of resolved equivalence sets
"""

from sameas.base import (
    SameAsRetriever,
    SingleUriSameAsRetriever,
    MultipleSameAsRetriever,
    SameAsRetrieverDecorator
)
from sameas.manager import DomainBasedSameAsRetrieverManager, extract_domain
from sameas.error_fixing import ErrorFixingSameAsRetriever
from sameas.crawling import CrawlingSameAsRetrieverDecorator
from sameas.cache import (
    CachingSameAsRetriever,
    FileBasedCachingSameAsRetriever,
    InMemoryCachingSameAsRetriever
)
from sameas.providers.http_provider import HTTPBasedSameAsRetriever
from sameas.providers.wikipedia_provider import WikipediaApiBasedSingleUriSameAsRetriever
from sameas.providers.bridging_provider import WikiDbPediaBridgingSameAsRetriever

__all__ = [
    'SameAsRetriever',
    'SingleUriSameAsRetriever',
    'MultipleSameAsRetriever',
    'SameAsRetrieverDecorator',
    'DomainBasedSameAsRetrieverManager',
    'extract_domain',
    'ErrorFixingSameAsRetriever',
    'CrawlingSameAsRetrieverDecorator',
    'CachingSameAsRetriever',
    'FileBasedCachingSameAsRetriever',
    'InMemoryCachingSameAsRetriever',
    'HTTPBasedSameAsRetriever',
    'WikipediaApiBasedSingleUriSameAsRetriever',
    'WikiDbPediaBridgingSameAsRetriever'
]
