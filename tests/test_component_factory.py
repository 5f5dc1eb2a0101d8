"""
Test startup wiring of the resolution layer
"""
import logging
import pytest
from typing import Optional, Set

from annotation_model import NamedEntity
from component_factory import (
    SemanticComponents,
    create_caching_retriever,
    create_components,
    create_entity_checker_manager,
    create_same_as_retriever,
    get_annotator_output_directory,
    parse_positive_int
)
from config import Settings, load_settings
from entity_checking import EntityChecker, EntityCheckerManager, HttpBasedEntityChecker
from knowledge_bases import SimpleWhiteListBasedUriKBClassifier
from class_hierarchy import ClassHierarchy, SimpleSubClassInferencer
from sameas import (
    CrawlingSameAsRetrieverDecorator,
    DomainBasedSameAsRetrieverManager,
    ErrorFixingSameAsRetriever,
    FileBasedCachingSameAsRetriever,
    HTTPBasedSameAsRetriever,
    InMemoryCachingSameAsRetriever,
    MultipleSameAsRetriever,
    SameAsRetriever,
    WikiDbPediaBridgingSameAsRetriever
)
from sameas.cache import DEFAULT_CACHE_SIZE


class LinkRetriever(SameAsRetriever):

    def __init__(self, links):
        self.links = links

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()
        return {uri} | self.links.get(uri, set())


class AlwaysExists(EntityChecker):

    async def entity_exists(self, uri: str) -> Optional[bool]:
        return True


def test_parse_positive_int():
    assert parse_positive_int(None, "key", 7) == 7
    assert parse_positive_int("42", "key", 7) == 42
    assert parse_positive_int(5, "key", 7) == 5
    assert parse_positive_int("abc", "key", 7) == 7
    assert parse_positive_int(0, "key", 7) == 7
    assert parse_positive_int(-3, "key", 7) == 7
    assert parse_positive_int(True, "key", 7) == 7


def test_file_cache_takes_precedence(tmp_path):
    settings = Settings(same_as_cache_file=str(tmp_path / "sameas.json"), same_as_in_memory_cache_size=5)

    retriever = create_same_as_retriever(settings)

    assert isinstance(retriever, FileBasedCachingSameAsRetriever)
    assert isinstance(retriever.decorated, CrawlingSameAsRetrieverDecorator)


def test_unusable_cache_file_falls_back_to_memory(tmp_path):
    settings = Settings(same_as_cache_file=str(tmp_path), same_as_in_memory_cache_size="250")

    retriever = create_caching_retriever(LinkRetriever({}), settings)

    assert isinstance(retriever, InMemoryCachingSameAsRetriever)
    assert retriever.cache_size == 250


@pytest.mark.parametrize("size", [None, "not a number", "0", -1])
def test_invalid_cache_size_uses_default(size):
    settings = Settings(same_as_cache_file=None, same_as_in_memory_cache_size=size)

    retriever = create_caching_retriever(LinkRetriever({}), settings)

    assert isinstance(retriever, InMemoryCachingSameAsRetriever)
    assert retriever.cache_size == DEFAULT_CACHE_SIZE


def test_manager_wiring():
    settings = Settings(
        http_same_as_domains=["dbpedia.org", "www.wikidata.org"],
        wikipedia_domains=["en.wikipedia.org"],
        bridged_wikipedia_languages=["en"],
        same_as_crawl_max_depth=4,
        same_as_crawl_max_uris=50
    )

    crawler = create_same_as_retriever(settings).decorated
    manager = crawler.decorated

    assert crawler.max_depth == 4
    assert crawler.max_uris == 50
    assert isinstance(manager, DomainBasedSameAsRetrieverManager)
    assert isinstance(manager.static_retriever, ErrorFixingSameAsRetriever)
    assert isinstance(manager.domain_retrievers["www.wikidata.org"], HTTPBasedSameAsRetriever)
    # HTTP retrieval and the bridge both serve dbpedia.org
    combined = manager.domain_retrievers["dbpedia.org"]
    assert isinstance(combined, MultipleSameAsRetriever)
    assert {type(r) for r in combined.retrievers} == {HTTPBasedSameAsRetriever, WikiDbPediaBridgingSameAsRetriever}


def test_entity_checker_shared_between_namespaces():
    settings = Settings(entity_checker_namespaces=["http://dbpedia.org/resource/", "http://de.dbpedia.org/resource/"])

    manager = create_entity_checker_manager(settings)

    checkers = list(manager.checkers.values())
    assert len(checkers) == 2
    assert isinstance(checkers[0], HttpBasedEntityChecker)
    assert checkers[0] is checkers[1]


def test_annotator_output_directory():
    assert get_annotator_output_directory(Settings(print_annotator_results=False, annotator_output_directory="out")) is None
    assert get_annotator_output_directory(Settings(print_annotator_results=True, annotator_output_directory=None)) is None
    assert get_annotator_output_directory(Settings(print_annotator_results=True, annotator_output_directory="out")) == "out"


def test_create_components(tmp_path):
    settings = Settings(same_as_cache_file=str(tmp_path / "sameas.json"), worker_pool_size=4)

    components = create_components(settings)

    assert components.worker_pool_size == 4
    assert isinstance(components.same_as_retriever, FileBasedCachingSameAsRetriever)
    assert components.kb_classifier.is_kb_uri("http://dbpedia.org/resource/China")


def test_load_settings_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "same_as_in_memory_cache_size: 300\n"
        "well_known_kbs:\n"
        "  - http://www.wikidata.org/entity/\n",
        encoding="utf-8"
    )

    settings = load_settings(str(config_file), worker_pool_size=3)

    assert settings.same_as_in_memory_cache_size == 300
    assert settings.well_known_kbs == ["http://www.wikidata.org/entity/"]
    assert settings.worker_pool_size == 3


def test_load_settings_rejects_non_mapping(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(str(config_file))


@pytest.mark.asyncio
async def test_prepare_meanings_then_classify():
    """Same-as expansion and entity checks run before the KB classification"""
    links = {
        "http://en.wikipedia.org/wiki/People's_Republic_of_China": {"http://en.wikipedia.org/wiki/China"},
        "http://en.wikipedia.org/wiki/China": {"http://dbpedia.org/resource/China"}
    }
    checker_manager = EntityCheckerManager()
    checker_manager.register_entity_checker("http://dbpedia.org/resource/", AlwaysExists())
    components = SemanticComponents(
        same_as_retriever=InMemoryCachingSameAsRetriever(CrawlingSameAsRetrieverDecorator(LinkRetriever(links))),
        entity_checker_manager=checker_manager,
        kb_classifier=SimpleWhiteListBasedUriKBClassifier(["http://dbpedia.org/resource/"]),
        sub_class_inferencer=SimpleSubClassInferencer(ClassHierarchy()),
        worker_pool_size=2
    )
    redirect = NamedEntity(0, 5, "http://en.wikipedia.org/wiki/People's_Republic_of_China")
    unknown = NamedEntity(10, 4, "http://notExisting.wikipedia.org/wiki/China")
    empty = NamedEntity(20, 3)

    await components.prepare_meanings([redirect, unknown, empty])

    assert "http://dbpedia.org/resource/China" in redirect.uris
    assert redirect.exists is True
    assert components.is_known_kb(redirect)
    assert not components.is_known_kb(unknown)
    assert not components.is_known_kb(empty)
    assert unknown.exists is None

    await components.close()


def test_create_components_configures_third_party_logging(tmp_path):
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    create_components(Settings(same_as_cache_file=str(tmp_path / "sameas.jsonl")))

    assert root_logger.level == logging.WARNING
