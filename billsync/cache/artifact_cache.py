"""
Artifact cache for datasets, bill text versions, and version listings.

Bounds how often the rate-limited provider is called. Bill text versions are
immutable and kept for every version seen, subject to a byte cap that evicts
superseded versions before current ones. Datasets and version listings are
single-slot per session / bill and expire after a TTL.

Responsibility: Store retrieved artifacts with at-most-one-fetch-per-key semantics
"""

from dataclasses import dataclass
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union
import logging
import time

from .inflight import InflightRegistry
from ..models.documents import BillDocument, BillVersionIndex, Dataset

logger = logging.getLogger(__name__)


# Keys of different kinds never compare equal, even with equal fields
@dataclass(frozen=True)
class DatasetKey:
    session_id: str


@dataclass(frozen=True)
class DocumentKey:
    bill_id: str
    version_id: int


@dataclass(frozen=True)
class VersionIndexKey:
    bill_id: str


CacheKey = Union[DatasetKey, DocumentKey, VersionIndexKey]
DocumentListener = Callable[[BillDocument], None]


@dataclass
class CacheStats:
    """Counters for monitoring cache effectiveness"""
    hits: int = 0
    misses: int = 0
    joins: int = 0
    evictions: int = 0
    documents: int = 0
    document_bytes: int = 0
    datasets: int = 0
    version_indexes: int = 0


class ArtifactCache:
    """
    Cache of upstream artifacts keyed by their natural identity.

    - DocumentKey(bill_id, version_id) → BillDocument, LRU within a byte cap
    - DatasetKey(session_id) → Dataset, one slot per session
    - VersionIndexKey(bill_id) → BillVersionIndex, one slot per bill

    Example:
        cache = ArtifactCache(max_document_bytes=50 * 1024 * 1024)
        document = await cache.get_or_fetch(
            DocumentKey("1234567", 2890123),
            lambda: adapter.fetch_bill_text("1234567", 2890123, api_key)
        )
    """

    def __init__(
        self,
        max_document_bytes: int = 50 * 1024 * 1024,
        dataset_ttl_seconds: Optional[float] = None,
        version_index_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize cache.

        Args:
            max_document_bytes: Cap on total cached bill text (UTF-8 bytes)
            dataset_ttl_seconds: Dataset slot lifetime (None = until replaced)
            version_index_ttl_seconds: Version listing lifetime (None = until replaced)
            clock: Monotonic clock, injectable for tests
        """
        if max_document_bytes < 1:
            raise ValueError("max_document_bytes must be positive")

        self.max_document_bytes = max_document_bytes
        self._ttl = {
            DatasetKey: dataset_ttl_seconds,
            VersionIndexKey: version_index_ttl_seconds,
        }
        self._clock = clock

        self._documents: "OrderedDict[DocumentKey, BillDocument]" = OrderedDict()
        self._document_bytes = 0
        self._slots: Dict[CacheKey, Tuple[Any, float]] = {}

        self._inflight: InflightRegistry[Any] = InflightRegistry("artifact-cache")
        self._listeners: List[DocumentListener] = []
        self._stats = CacheStats()

    # MARK: - Lookup

    async def get_or_fetch(
        self,
        key: CacheKey,
        fetch_fn: Callable[[], Awaitable[Any]],
        refresh: bool = False
    ) -> Any:
        """
        Return the cached value for key, fetching it at most once concurrently.

        Args:
            key: DatasetKey, DocumentKey, or VersionIndexKey
            fetch_fn: Zero-argument coroutine function producing the value
            refresh: Ignore a cached value (still joins an in-flight fetch)

        Returns:
            Cached or freshly fetched value

        Raises:
            Whatever fetch_fn raised; failures are not cached
        """
        if not refresh:
            cached = self.peek(key)
            if cached is not None:
                self._stats.hits += 1
                logger.debug(f"Cache hit for {key}")
                return cached

        if self._inflight.pending(key):
            self._stats.joins += 1
        else:
            self._stats.misses += 1
            logger.debug(f"Cache miss for {key}, fetching from upstream")

        async def fetch_and_store():
            value = await fetch_fn()
            self.put(key, value)
            return value

        return await self._inflight.run(key, fetch_and_store)

    def peek(self, key: CacheKey) -> Optional[Any]:
        """Cached value for key without fetching (None when absent or expired)"""
        if isinstance(key, DocumentKey):
            document = self._documents.get(key)
            if document is not None:
                self._documents.move_to_end(key)
            return document

        self._check_key(key)
        slot = self._slots.get(key)
        if slot is None:
            return None

        value, stored_at = slot
        ttl = self._ttl[type(key)]
        if ttl is not None and self._clock() - stored_at >= ttl:
            logger.debug(f"Cache entry for {key} expired")
            return None
        return value

    # MARK: - Mutation

    def put(self, key: CacheKey, value: Any) -> None:
        """Store a value under key, replacing any previous value"""
        if isinstance(key, DocumentKey):
            if not isinstance(value, BillDocument):
                raise TypeError(f"{key} requires a BillDocument, got {type(value).__name__}")
            self._store_document(key, value)
            for listener in list(self._listeners):
                listener(value)
            return

        self._check_key(key)
        expected = Dataset if isinstance(key, DatasetKey) else BillVersionIndex
        if not isinstance(value, expected):
            raise TypeError(f"{key} requires a {expected.__name__}, got {type(value).__name__}")

        if key in self._slots:
            logger.debug(f"Replacing cached {expected.__name__} for {key}")
        self._slots[key] = (value, self._clock())

    def invalidate(self, key: CacheKey) -> bool:
        """Drop one entry; returns True if something was removed"""
        if isinstance(key, DocumentKey):
            document = self._documents.pop(key, None)
            if document is None:
                return False
            self._document_bytes -= document.size
            return True
        return self._slots.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every cached artifact (in-flight fetches are unaffected)"""
        self._documents.clear()
        self._document_bytes = 0
        self._slots.clear()

    def subscribe(self, listener: DocumentListener) -> None:
        """Register a callback invoked with every newly stored BillDocument"""
        self._listeners.append(listener)

    # MARK: - Introspection

    def versions(self, bill_id: str) -> List[int]:
        """Cached version ids for a bill, ascending"""
        return sorted(key.version_id for key in self._documents if key.bill_id == bill_id)

    def latest_version(self, bill_id: str) -> Optional[int]:
        """Highest cached version id for a bill"""
        versions = self.versions(bill_id)
        return versions[-1] if versions else None

    def stats(self) -> CacheStats:
        """Snapshot of cache counters"""
        return CacheStats(
            hits=self._stats.hits,
            misses=self._stats.misses,
            joins=self._stats.joins,
            evictions=self._stats.evictions,
            documents=len(self._documents),
            document_bytes=self._document_bytes,
            datasets=sum(1 for key in self._slots if isinstance(key, DatasetKey)),
            version_indexes=sum(1 for key in self._slots if isinstance(key, VersionIndexKey)),
        )

    # MARK: - Internals

    def _check_key(self, key: Any) -> None:
        if not isinstance(key, (DatasetKey, VersionIndexKey)):
            raise TypeError(f"Unsupported cache key type: {type(key).__name__}")

    def _store_document(self, key: DocumentKey, document: BillDocument) -> None:
        previous = self._documents.pop(key, None)
        if previous is not None:
            self._document_bytes -= previous.size

        self._documents[key] = document
        self._document_bytes += document.size

        while self._document_bytes > self.max_document_bytes and len(self._documents) > 1:
            victim = self._pick_victim(protect=key)
            evicted = self._documents.pop(victim)
            self._document_bytes -= evicted.size
            self._stats.evictions += 1
            logger.debug(f"Evicted {victim} ({evicted.size} bytes)")

    def _pick_victim(self, protect: DocumentKey) -> DocumentKey:
        """
        Choose the entry to evict.

        Superseded versions (older than the newest cached version of the same
        bill) go first, least recently used first; current versions are only
        evicted once no superseded version remains.
        """
        newest: Dict[str, int] = {}
        for key in self._documents:
            if key.version_id > newest.get(key.bill_id, -1):
                newest[key.bill_id] = key.version_id

        fallback = None
        for key in self._documents:
            if key == protect:
                continue
            if key.version_id < newest[key.bill_id]:
                return key
            if fallback is None:
                fallback = key
        return fallback
