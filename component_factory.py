"""
component_factory.py - Startup composition of the resolution layer

Builds every component once from an immutable Settings value:
- the same-as retriever chain (domain manager -> crawler -> cache)
- the class hierarchy inferencer
- the entity checker manager
- the KB classifier
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from annotation_model import Meaning
from class_hierarchy import SimpleSubClassInferencer, SubClassInferencer, load_class_hierarchies
from config import Settings, settings as default_settings
from entity_checking import EntityCheckerManager, HttpBasedEntityChecker
from exceptions import ConversionError
from knowledge_bases import SimpleWhiteListBasedUriKBClassifier, UriKBClassifier
from logger import configure_root_logger, get_logger
from sameas import (
    CrawlingSameAsRetrieverDecorator,
    DomainBasedSameAsRetrieverManager,
    ErrorFixingSameAsRetriever,
    FileBasedCachingSameAsRetriever,
    HTTPBasedSameAsRetriever,
    InMemoryCachingSameAsRetriever,
    SameAsRetriever,
    WikiDbPediaBridgingSameAsRetriever,
    WikipediaApiBasedSingleUriSameAsRetriever
)
from sameas.cache import DEFAULT_CACHE_SIZE

logger = get_logger(__name__)

DEFAULT_NUMBER_OF_WORKERS = 20


def parse_positive_int(value: Any, key: str, default: int) -> int:
    """
    Parse a numeric configuration value

    Invalid values are reported as ConversionError and replaced by the default.
    """
    if value is None:
        return default
    try:
        if isinstance(value, bool):
            raise TypeError("boolean is not a valid integer")
        number = int(str(value).strip()) if isinstance(value, str) else int(value)
        if number <= 0:
            raise ValueError(f"{number} is not positive")
    except (TypeError, ValueError) as e:
        error = ConversionError(f"Exception while trying to load parameter \"{key}\" from value {value!r}",
                                key=key, original_error=e)
        logger.warning(f"{error}. Using default {default}.")
        return default
    return number


def create_sub_class_inferencer(settings: Settings) -> SubClassInferencer:
    hierarchy = load_class_hierarchies(settings.class_hierarchy_files)
    logger.info(f"Class hierarchy contains {len(hierarchy)} classes and {hierarchy.edge_count()} subclass relations")
    return SimpleSubClassInferencer(hierarchy)


def create_caching_retriever(retriever: SameAsRetriever, settings: Settings) -> SameAsRetriever:
    """
    Wrap the retriever with exactly one cache

    The file based cache is preferred. If it is not configured or can not be
    opened, a bounded in-memory cache is used instead.
    """
    cached = None
    if settings.same_as_cache_file:
        cached = FileBasedCachingSameAsRetriever.create(retriever, settings.same_as_cache_file)

    if cached is None:
        logger.warning("Couldn't create file based cache for sameAs retrieving. Trying to create in memory cache.")
        if settings.same_as_in_memory_cache_size is None:
            logger.info("Using default cache size for sameAs link in memory cache.")
        cache_size = parse_positive_int(
            settings.same_as_in_memory_cache_size,
            "same_as_in_memory_cache_size",
            DEFAULT_CACHE_SIZE
        )
        cached = InMemoryCachingSameAsRetriever(retriever, cache_size)

    return cached


def create_same_as_retriever(settings: Settings) -> SameAsRetriever:
    manager = DomainBasedSameAsRetrieverManager()
    manager.add_static_retriever(ErrorFixingSameAsRetriever())

    if settings.http_same_as_domains:
        http_retriever = HTTPBasedSameAsRetriever(
            timeout=settings.http_timeout_seconds,
            user_agent=settings.http_user_agent,
            failure_threshold=settings.circuit_breaker_threshold,
            recovery_timeout=settings.circuit_breaker_timeout
        )
        for domain in settings.http_same_as_domains:
            manager.add_domain_specific_retriever(domain, http_retriever)

    if settings.wikipedia_domains:
        wiki_retriever = WikipediaApiBasedSingleUriSameAsRetriever(
            timeout=settings.http_timeout_seconds,
            user_agent=settings.http_user_agent
        )
        for domain in settings.wikipedia_domains:
            manager.add_domain_specific_retriever(domain, wiki_retriever)

    WikiDbPediaBridgingSameAsRetriever(settings.bridged_wikipedia_languages).add_to_manager(manager)

    retriever: SameAsRetriever = CrawlingSameAsRetrieverDecorator(
        manager,
        max_depth=parse_positive_int(settings.same_as_crawl_max_depth, "same_as_crawl_max_depth", 3),
        max_uris=parse_positive_int(settings.same_as_crawl_max_uris, "same_as_crawl_max_uris", 100)
    )
    return create_caching_retriever(retriever, settings)


def create_entity_checker_manager(settings: Settings) -> EntityCheckerManager:
    manager = EntityCheckerManager()
    namespaces = [namespace for namespace in settings.entity_checker_namespaces if namespace]
    if namespaces:
        checker = HttpBasedEntityChecker(
            timeout=settings.http_timeout_seconds,
            user_agent=settings.http_user_agent
        )
        for namespace in namespaces:
            manager.register_entity_checker(namespace, checker)
    return manager


def create_kb_classifier(settings: Settings) -> UriKBClassifier:
    return SimpleWhiteListBasedUriKBClassifier(settings.well_known_kbs)


def get_annotator_output_directory(settings: Settings) -> Optional[str]:
    """Directory for the annotator output writer or None if it is disabled"""
    if settings.annotator_output_writer_enabled:
        return settings.annotator_output_directory
    return None


@dataclass
class SemanticComponents:
    """All resolution layer components, shared by the workers of a run"""
    same_as_retriever: SameAsRetriever
    entity_checker_manager: EntityCheckerManager
    kb_classifier: UriKBClassifier
    sub_class_inferencer: SubClassInferencer
    worker_pool_size: int = DEFAULT_NUMBER_OF_WORKERS
    annotator_output_directory: Optional[str] = None

    async def prepare_meaning(self, meaning: Meaning) -> Meaning:
        """Grow the meaning with its same-as URIs and check the existence of its entities"""
        await self.same_as_retriever.add_same_uris(meaning.uris)
        await self.entity_checker_manager.check_meanings([meaning])
        return meaning

    async def prepare_meanings(self, meanings: Iterable[Meaning]) -> List[Meaning]:
        semaphore = asyncio.Semaphore(self.worker_pool_size)

        async def prepare(meaning: Meaning) -> Meaning:
            async with semaphore:
                return await self.prepare_meaning(meaning)

        return list(await asyncio.gather(*(prepare(meaning) for meaning in meanings)))

    def is_known_kb(self, meaning: Optional[Meaning]) -> bool:
        return self.kb_classifier.is_known_kb(meaning)

    async def close(self):
        await self.same_as_retriever.close()
        await self.entity_checker_manager.close()


def create_components(settings: Optional[Settings] = None) -> SemanticComponents:
    settings = settings or default_settings
    configure_root_logger()
    components = SemanticComponents(
        same_as_retriever=create_same_as_retriever(settings),
        entity_checker_manager=create_entity_checker_manager(settings),
        kb_classifier=create_kb_classifier(settings),
        sub_class_inferencer=create_sub_class_inferencer(settings),
        worker_pool_size=parse_positive_int(settings.worker_pool_size, "worker_pool_size",
                                            DEFAULT_NUMBER_OF_WORKERS),
        annotator_output_directory=get_annotator_output_directory(settings)
    )
    logger.info("Resolution layer components created")
    return components
