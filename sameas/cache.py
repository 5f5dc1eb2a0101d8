"""
Caching decorators for same-as retrieval

Two interchangeable caches wrap the (crawling) retriever chain:
1. File based: durable, reloaded on restart, appended to after misses
2. In-memory: bounded LRU, used when no cache file is available

Cache entries are equivalence sets. A resolved set is stored for the
requested URI and for each of its members, and sets sharing a member are
merged, so all members of a set always map to the same entry.
"""
import asyncio
import json
import os
import tempfile
from abc import abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Set, TextIO, Union

from exceptions import CacheBackendError
from logger import get_logger
from metrics import sameas_cache_hits, sameas_cache_misses, sameas_retrieval_duration
from sameas.base import SameAsRetriever, SameAsRetrieverDecorator

logger = get_logger(__name__)

DEFAULT_CACHE_SIZE = 10000


class CachingSameAsRetriever(SameAsRetrieverDecorator):
    """
    Shared cache protocol

    Hits are served without locking. On a miss the wrapped retriever runs
    outside the lock; the result is inserted under an asyncio lock without
    any await point between the re-check and the insert, so a cancelled
    caller leaves the cache either untouched or fully updated.
    """

    cache_name = "cache"

    def __init__(self, decorated: SameAsRetriever):
        super().__init__(decorated)
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    @abstractmethod
    def _lookup(self, uri: str) -> Optional[FrozenSet[str]]:
        """Return the cached set of a URI or None"""
        pass

    @abstractmethod
    def _store(self, uri: str, same_uris: FrozenSet[str]) -> None:
        """Map every member of the set (the requested URI included) to the set, called under the lock"""
        pass

    async def retrieve_same_uris(self, uri: Optional[str]) -> Set[str]:
        if not uri:
            return set()

        cached = self._lookup(uri)
        if cached is not None:
            self.hits += 1
            sameas_cache_hits.labels(self.cache_name).inc()
            return set(cached)

        self.misses += 1
        sameas_cache_misses.labels(self.cache_name).inc()
        with sameas_retrieval_duration.labels(self.cache_name).time():
            result = await self.decorated.retrieve_same_uris(uri)

        merged = set(result or ())
        merged.add(uri)

        async with self._lock:
            for member in list(merged):
                existing = self._lookup(member)
                if existing is not None:
                    merged.update(existing)
            self._store(uri, frozenset(merged))

        return set(merged)

    def get_stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses
        return {
            'cache': self.cache_name,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total if total > 0 else 0.0
        }


class InMemoryCachingSameAsRetriever(CachingSameAsRetriever):
    """Bounded cache evicting the least recently used URI"""

    cache_name = "memory"

    def __init__(self, decorated: SameAsRetriever, cache_size: int = DEFAULT_CACHE_SIZE):
        super().__init__(decorated)
        if cache_size <= 0:
            raise ValueError(f"Cache size must be positive, got {cache_size}")
        self.cache_size = cache_size
        self._cache: OrderedDict = OrderedDict()

    def _lookup(self, uri: str) -> Optional[FrozenSet[str]]:
        same_uris = self._cache.get(uri)
        if same_uris is not None:
            # Move to end (most recently used)
            self._cache.move_to_end(uri)
        return same_uris

    def _store(self, uri: str, same_uris: FrozenSet[str]) -> None:
        for member in same_uris:
            self._cache[member] = same_uris
            self._cache.move_to_end(member)
        # The requested URI is the most recently used one
        self._cache.move_to_end(uri)

        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, uri: str) -> bool:
        return uri in self._cache

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats.update({'size': len(self._cache), 'maxsize': self.cache_size})
        return stats


def format_cache_line(uris: Iterable[str]) -> str:
    return json.dumps({'uris': sorted(uris)}, ensure_ascii=False)


def merge_cache_entry(cache: Dict[str, FrozenSet[str]], uris: Iterable[str]) -> FrozenSet[str]:
    """Merge a set into the cache, joining it with every set sharing a member"""
    merged = set(uris)
    for uri in list(merged):
        if uri in cache:
            merged.update(cache[uri])
    same_uris = frozenset(merged)
    for uri in same_uris:
        cache[uri] = same_uris
    return same_uris


def read_cache_file(cache_file: Path) -> Dict[str, FrozenSet[str]]:
    """
    Load a JSON-lines cache file, one {"uris": [...]} object per line

    Later lines are merged into earlier ones. An incomplete last line, left
    behind by an interrupted append, is skipped.

    Raises:
        CacheBackendError: If the file can not be read or a line has an invalid structure
    """
    try:
        with open(cache_file, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise CacheBackendError(f"Couldn't read same-as cache file {cache_file}",
                                cache_file=str(cache_file), original_error=e)

    cache: Dict[str, FrozenSet[str]] = {}
    for number, line in enumerate(lines, 1):
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            if number == len(lines):
                logger.warning(f"Ignoring incomplete last line of same-as cache file {cache_file}")
                break
            raise CacheBackendError(f"Same-as cache file {cache_file} has an invalid line {number}",
                                    cache_file=str(cache_file), original_error=e)

        uris = entry.get('uris') if isinstance(entry, dict) else None
        if not isinstance(uris, list) or not all(isinstance(uri, str) for uri in uris):
            raise CacheBackendError(f"Same-as cache file {cache_file} has an invalid structure in line {number}",
                                    cache_file=str(cache_file))
        merge_cache_entry(cache, uris)
    return cache


def write_cache_file(cache_file: Path, cache: Dict[str, FrozenSet[str]]) -> None:
    """
    Atomically replace the cache file with one line per equivalence set

    The data is written to a temporary file in the same directory which then
    replaces the cache file, so readers never observe a partial file.
    """
    lines = sorted(format_cache_line(uris) for uris in set(cache.values()))
    temp_name = None
    try:
        with tempfile.NamedTemporaryFile('w', encoding='utf-8', dir=cache_file.parent,
                                         prefix=f".{cache_file.name}.", suffix=".tmp",
                                         delete=False) as f:
            temp_name = f.name
            for line in lines:
                f.write(line + '\n')
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_name, cache_file)
    except OSError as e:
        if temp_name and os.path.exists(temp_name):
            os.unlink(temp_name)
        raise CacheBackendError(f"Couldn't write same-as cache file {cache_file}",
                                cache_file=str(cache_file), original_error=e)


class FileBasedCachingSameAsRetriever(CachingSameAsRetriever):
    """
    Durable cache backed by an append-only JSON-lines file

    Each stored set is appended as one line and flushed. The file is
    compacted (rewritten atomically with one line per set) when the cache is
    opened and when it is closed.
    """

    cache_name = "file"

    def __init__(
        self,
        decorated: SameAsRetriever,
        cache_file: Path,
        cache: Optional[Dict[str, FrozenSet[str]]] = None
    ):
        super().__init__(decorated)
        self.cache_file = Path(cache_file)
        self._cache: Dict[str, FrozenSet[str]] = cache if cache is not None else {}
        self._log: Optional[TextIO] = None
        self._appended = 0
        self._needs_compaction = False

    @classmethod
    def create(
        cls,
        decorated: SameAsRetriever,
        cache_file: Optional[Union[str, Path]]
    ) -> Optional['FileBasedCachingSameAsRetriever']:
        """
        Open (or create) the cache file and build the decorator

        Returns:
            The caching retriever or None if the file can not be used
        """
        try:
            if not cache_file:
                raise CacheBackendError("No same-as cache file configured")
            path = Path(cache_file)
            if path.exists():
                if not path.is_file():
                    raise CacheBackendError(f"Same-as cache file {path} is not a regular file",
                                            cache_file=str(path))
                cache = read_cache_file(path)
                if not os.access(path, os.W_OK):
                    raise CacheBackendError(f"Same-as cache file {path} is not writable",
                                            cache_file=str(path))
                logger.info(f"Loaded {len(cache)} cached same-as entries from {path}")
            else:
                try:
                    path.parent.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise CacheBackendError(f"Couldn't create directory for same-as cache file {path}",
                                            cache_file=str(path), original_error=e)
                cache = {}
                logger.info(f"Creating new same-as cache file {path}")
            write_cache_file(path, cache)
        except CacheBackendError as e:
            logger.warning(f"Couldn't create file based same-as cache: {e}")
            return None

        return cls(decorated, path, cache)

    def _lookup(self, uri: str) -> Optional[FrozenSet[str]]:
        return self._cache.get(uri)

    def _store(self, uri: str, same_uris: FrozenSet[str]) -> None:
        for member in same_uris:
            self._cache[member] = same_uris
        try:
            if self._log is None:
                self._log = open(self.cache_file, 'a', encoding='utf-8')
            self._log.write(format_cache_line(same_uris) + '\n')
            self._log.flush()
        except OSError as e:
            # A partially written line is repaired by the next compaction
            self._needs_compaction = True
            logger.error(f"Couldn't append to same-as cache file {self.cache_file}: {e}")
            return
        self._appended += 1

    def _close_log(self):
        if self._log is not None:
            try:
                self._log.close()
            except OSError as e:
                logger.error(f"Couldn't close same-as cache file {self.cache_file}: {e}")
            self._log = None

    def store_cache(self) -> bool:
        """Compact the cache file, returns False if writing failed"""
        self._close_log()
        try:
            write_cache_file(self.cache_file, self._cache)
        except CacheBackendError as e:
            logger.error(f"Couldn't store same-as cache: {e}")
            return False
        self._appended = 0
        self._needs_compaction = False
        return True

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, uri: str) -> bool:
        return uri in self._cache

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats.update({
            'size': len(self._cache),
            'cache_file': str(self.cache_file),
            'appended': self._appended
        })
        return stats

    async def close(self):
        if self._appended or self._needs_compaction:
            self.store_cache()
        else:
            self._close_log()
        await super().close()
