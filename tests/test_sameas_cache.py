"""
Test the in-memory and file based same-as caches
"""
import asyncio
import json
import pytest
from typing import Dict, Optional, Set

from sameas import FileBasedCachingSameAsRetriever, InMemoryCachingSameAsRetriever, SameAsRetriever
from sameas.cache import read_cache_file, write_cache_file


class CountingRetriever(SameAsRetriever):

    def __init__(self, links: Optional[Dict[str, Set[str]]] = None):
        self.links = links or {}
        self.calls = []
        self.close_called = False

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        self.calls.append(uri)
        return {uri} | self.links.get(uri, set())

    async def close(self):
        self.close_called = True


@pytest.mark.asyncio
async def test_hit_does_not_invoke_retriever():
    retriever = CountingRetriever({"a": {"b"}})
    cache = InMemoryCachingSameAsRetriever(retriever, cache_size=10)

    first = await cache.retrieve_same_uris("a")
    second = await cache.retrieve_same_uris("a")

    assert first == second == {"a", "b"}
    assert retriever.calls == ["a"]
    assert cache.get_stats()["hits"] == 1
    assert cache.get_stats()["misses"] == 1


@pytest.mark.asyncio
async def test_members_share_cached_set():
    retriever = CountingRetriever({"a": {"b"}})
    cache = InMemoryCachingSameAsRetriever(retriever, cache_size=10)

    await cache.retrieve_same_uris("a")

    assert await cache.retrieve_same_uris("b") == {"a", "b"}
    assert retriever.calls == ["a"]


@pytest.mark.asyncio
async def test_sets_sharing_a_member_are_merged():
    retriever = CountingRetriever({"a": {"b"}, "c": {"b"}})
    cache = InMemoryCachingSameAsRetriever(retriever, cache_size=10)

    await cache.retrieve_same_uris("a")
    result = await cache.retrieve_same_uris("c")

    assert result == {"a", "b", "c"}
    assert await cache.retrieve_same_uris("a") == {"a", "b", "c"}


@pytest.mark.asyncio
async def test_lru_eviction():
    retriever = CountingRetriever()
    cache = InMemoryCachingSameAsRetriever(retriever, cache_size=2)

    await cache.retrieve_same_uris("a")
    await cache.retrieve_same_uris("b")
    await cache.retrieve_same_uris("a")  # a is now most recently used
    await cache.retrieve_same_uris("c")  # evicts b

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache
    assert len(cache) == 2


@pytest.mark.asyncio
async def test_requested_uri_survives_small_cache():
    retriever = CountingRetriever({"a": {"b", "c", "d"}})
    cache = InMemoryCachingSameAsRetriever(retriever, cache_size=2)

    assert await cache.retrieve_same_uris("a") == {"a", "b", "c", "d"}
    assert "a" in cache
    assert len(cache) == 2


def test_invalid_cache_size():
    with pytest.raises(ValueError):
        InMemoryCachingSameAsRetriever(CountingRetriever(), cache_size=0)


def read_lines(cache_file):
    return [json.loads(line) for line in cache_file.read_text(encoding="utf-8").splitlines()]


class BlockingRetriever(SameAsRetriever):
    """Waits until released, so a caller can be cancelled mid-retrieval"""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        self.started.set()
        await self.release.wait()
        return {uri, uri + "#same"}


@pytest.mark.asyncio
async def test_file_cache_persists_and_reloads(tmp_path):
    cache_file = tmp_path / "cache" / "sameas.jsonl"
    retriever = CountingRetriever({"a": {"b"}})

    cache = FileBasedCachingSameAsRetriever.create(retriever, str(cache_file))
    assert cache is not None
    assert cache_file.exists()

    await cache.retrieve_same_uris("a")
    await cache.close()
    assert retriever.close_called

    assert read_lines(cache_file) == [{"uris": ["a", "b"]}]

    new_retriever = CountingRetriever()
    reloaded = FileBasedCachingSameAsRetriever.create(new_retriever, str(cache_file))

    assert await reloaded.retrieve_same_uris("b") == {"a", "b"}
    assert new_retriever.calls == []


@pytest.mark.asyncio
async def test_misses_are_appended_one_line_each(tmp_path):
    cache_file = tmp_path / "sameas.jsonl"
    cache = FileBasedCachingSameAsRetriever.create(CountingRetriever({"a": {"b"}}), cache_file)

    await cache.retrieve_same_uris("a")
    await cache.retrieve_same_uris("c")
    await cache.retrieve_same_uris("b")  # hit, nothing appended

    assert read_lines(cache_file) == [{"uris": ["a", "b"]}, {"uris": ["c"]}]
    assert cache.get_stats()["appended"] == 2
    # Readable while the cache is still open
    assert read_cache_file(cache_file)["b"] == frozenset({"a", "b"})

    await cache.close()


@pytest.mark.asyncio
async def test_overlapping_lines_are_compacted_on_open(tmp_path):
    cache_file = tmp_path / "sameas.jsonl"
    cache_file.write_text('{"uris": ["a", "b"]}\n{"uris": ["b", "c"]}\n', encoding="utf-8")

    cache = FileBasedCachingSameAsRetriever.create(CountingRetriever(), cache_file)

    assert read_lines(cache_file) == [{"uris": ["a", "b", "c"]}]
    assert await cache.retrieve_same_uris("c") == {"a", "b", "c"}


def test_create_returns_none_for_unusable_files(tmp_path):
    retriever = CountingRetriever()

    assert FileBasedCachingSameAsRetriever.create(retriever, None) is None
    assert FileBasedCachingSameAsRetriever.create(retriever, tmp_path) is None

    invalid = tmp_path / "invalid.jsonl"
    invalid.write_text('{not json\n{"uris": ["a"]}\n', encoding="utf-8")
    assert FileBasedCachingSameAsRetriever.create(retriever, invalid) is None

    wrong_structure = tmp_path / "wrong.jsonl"
    wrong_structure.write_text(json.dumps({"uris": "nope"}) + "\n", encoding="utf-8")
    assert FileBasedCachingSameAsRetriever.create(retriever, wrong_structure) is None

    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    assert FileBasedCachingSameAsRetriever.create(retriever, blocker / "sameas.jsonl") is None


def test_incomplete_last_line_is_skipped(tmp_path):
    cache_file = tmp_path / "sameas.jsonl"
    cache_file.write_text('{"uris": ["a", "b"]}\n{"uris": ["c", "d', encoding="utf-8")

    cache = read_cache_file(cache_file)

    assert cache == {"a": frozenset({"a", "b"}), "b": frozenset({"a", "b"})}


def test_read_merges_overlapping_sets(tmp_path):
    cache_file = tmp_path / "sameas.jsonl"
    cache_file.write_text('{"uris": ["a", "b"]}\n{"uris": ["b", "c"]}\n', encoding="utf-8")

    cache = read_cache_file(cache_file)

    assert cache["a"] == cache["c"] == frozenset({"a", "b", "c"})


def test_write_is_readable(tmp_path):
    cache_file = tmp_path / "sameas.jsonl"
    same = frozenset({"x", "y"})

    write_cache_file(cache_file, {"x": same, "y": same})

    assert read_cache_file(cache_file) == {"x": same, "y": same}
    assert list(tmp_path.iterdir()) == [cache_file]


@pytest.mark.asyncio
async def test_cancelled_miss_leaves_memory_cache_untouched():
    retriever = BlockingRetriever()
    cache = InMemoryCachingSameAsRetriever(retriever, cache_size=10)

    task = asyncio.create_task(cache.retrieve_same_uris("a"))
    await retriever.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(cache) == 0
    assert "a" not in cache


@pytest.mark.asyncio
async def test_cancelled_miss_leaves_cache_file_untouched(tmp_path):
    cache_file = tmp_path / "sameas.jsonl"
    cache_file.write_text('{"uris": ["x", "y"]}\n', encoding="utf-8")
    retriever = BlockingRetriever()
    cache = FileBasedCachingSameAsRetriever.create(retriever, cache_file)
    content = cache_file.read_text(encoding="utf-8")

    task = asyncio.create_task(cache.retrieve_same_uris("a"))
    await retriever.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert "a" not in cache
    assert cache_file.read_text(encoding="utf-8") == content
    await cache.close()
    assert cache_file.read_text(encoding="utf-8") == content
    assert read_cache_file(cache_file) == {"x": frozenset({"x", "y"}), "y": frozenset({"x", "y"})}


@pytest.mark.asyncio
async def test_concurrent_misses_agree():
    retriever = CountingRetriever({"a": {"b"}, "b": {"c"}})
    cache = InMemoryCachingSameAsRetriever(retriever, cache_size=10)

    results = await asyncio.gather(*(cache.retrieve_same_uris(uri) for uri in ["a", "b", "a", "b"]))

    assert all("a" in result or "b" in result for result in results)
    assert await cache.retrieve_same_uris("a") == await cache.retrieve_same_uris("b")
