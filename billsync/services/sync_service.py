"""
Synchronization facade over upstream client, cache, diff engine, and summaries.

Every public operation is one logical request that moves through
REQUESTED → RESOLVING → COMPLETED and ends in success or failure. Upstream
fetches go through the artifact cache, so concurrent requests for the same
artifact share one provider call; a failed fetch leaves nothing behind and
the next request tries again.

Responsibility: Stable request/response operations consumed by the HTTP boundary
"""

from collections import OrderedDict, deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Deque, Dict, Iterator, Optional, Tuple, TypeVar
import asyncio
import logging

from ..adapters.legiscan_adapter import LegiScanAdapter
from ..cache import ArtifactCache, DatasetKey, DocumentKey, InflightRegistry, VersionIndexKey
from ..config import Settings, settings as default_settings
from ..diff import Granularity, compute_diff
from ..errors import InvalidRequest, NotFound, Unauthorized, VersionNotFound
from ..models.documents import (
    BillDocument,
    BillVersionIndex,
    Dataset,
    DiffResult,
    Summary,
    utcnow,
)
from ..summary import BaseSummarizer, build_summarizer
from ..utils.retry import retry_async

logger = logging.getLogger(__name__)

T = TypeVar('T')

DiffKey = Tuple[str, int, int, str]


class RequestState(str, Enum):
    """Lifecycle of one facade request"""
    REQUESTED = "requested"
    RESOLVING = "resolving"
    COMPLETED = "completed"


class RequestOutcome(str, Enum):
    """Terminal result of a completed request"""
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class SyncRequest:
    """Record of one logical request"""
    operation: str
    target: str
    state: RequestState = RequestState.REQUESTED
    outcome: Optional[RequestOutcome] = None
    error: Optional[str] = None
    requested_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    def resolving(self) -> None:
        self.state = RequestState.RESOLVING

    def complete(self, outcome: RequestOutcome, error: Optional[str] = None) -> None:
        self.state = RequestState.COMPLETED
        self.outcome = outcome
        self.error = error
        self.completed_at = utcnow()

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.requested_at).total_seconds()


class BillSyncService:
    """
    Synchronization facade.

    Example:
        service = BillSyncService()
        diff = await service.get_diff("1234567", 2890001, 2890123)
        summary = await service.get_summary("1234567")
        dataset = await service.get_raw_dataset("2041", access_key)
        await service.close()

    Collaborators are injectable; tests pass an adapter backed by a mock
    transport and a deterministic summarizer.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        adapter: Optional[LegiScanAdapter] = None,
        cache: Optional[ArtifactCache] = None,
        summarizer: Optional[BaseSummarizer] = None,
        history_size: int = 100
    ):
        self.settings = config or default_settings
        self.adapter = adapter or LegiScanAdapter(self.settings.legiscan)
        self.cache = cache or ArtifactCache(
            max_document_bytes=self.settings.cache.max_document_bytes,
            dataset_ttl_seconds=self.settings.cache.dataset_ttl_seconds,
            version_index_ttl_seconds=self.settings.cache.version_index_ttl_seconds,
        )
        self.summarizer = summarizer or build_summarizer(self.settings.summary)

        self._summaries: Dict[str, Summary] = {}
        self._summary_inflight: InflightRegistry[Summary] = InflightRegistry("summaries")
        self._diffs: "OrderedDict[DiffKey, DiffResult]" = OrderedDict()
        self.history: Deque[SyncRequest] = deque(maxlen=history_size)

        self.cache.subscribe(self._on_document_stored)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Release HTTP clients held by collaborators"""
        await self.adapter.close()
        await self.summarizer.close()

    # MARK: - Operations

    async def get_raw_dataset(
        self,
        session_id: str,
        access_key: str,
        refresh: bool = False,
        timeout: Optional[float] = None
    ) -> Dataset:
        """
        Return the bulk dataset for a session, payload unmodified.

        ``timeout`` bounds each provider call in seconds; it defaults to the
        configured provider timeout.

        Raises:
            InvalidRequest: session_id or access_key missing (no upstream call)
            Unauthorized, NotFound, UpstreamUnavailable
        """
        session_id = self.adapter.require(session_id, "id")
        access_key = self.adapter.require(access_key, "access_key")

        with self._track("get_raw_dataset", session_id) as request:
            request.resolving()
            return await self.cache.get_or_fetch(
                DatasetKey(session_id),
                lambda: self._attempt(
                    lambda: self.adapter.fetch_dataset(session_id, access_key, timeout=timeout)
                ),
                refresh=refresh,
            )

    async def get_diff(
        self,
        bill_id: str,
        from_version: int,
        to_version: int,
        granularity: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> DiffResult:
        """
        Diff two versions of a bill.

        ``timeout`` bounds each provider call in seconds. Requests that join
        a fetch already in flight wait under the timeout of the first one.

        Raises:
            InvalidRequest: equal versions, bad ids, or unknown granularity
            VersionNotFound: either version is absent upstream
            Unauthorized, UpstreamUnavailable
        """
        bill_id = self.adapter.require(bill_id, "bill_id")
        from_version = self.adapter.require_version(from_version)
        to_version = self.adapter.require_version(to_version)
        if from_version == to_version:
            raise InvalidRequest(
                f"fromVersion and toVersion must differ (both {from_version})"
            )

        granularity = granularity or self.settings.sync.diff_granularity
        try:
            granularity = Granularity(granularity.strip().lower()).value
        except ValueError:
            raise InvalidRequest(f"Unsupported diff granularity: {granularity}")

        memo_key = (bill_id, from_version, to_version, granularity)

        with self._track("get_diff", f"{bill_id}@{from_version}..{to_version}") as request:
            cached = self._diffs.get(memo_key)
            if cached is not None:
                self._diffs.move_to_end(memo_key)
                return cached

            request.resolving()
            older, newer = await asyncio.gather(
                self._document(bill_id, from_version, timeout),
                self._document(bill_id, to_version, timeout),
            )

            result = compute_diff(
                older.text,
                newer.text,
                granularity=granularity,
                bill_id=bill_id,
                from_version=from_version,
                to_version=to_version,
            )
            self._remember_diff(memo_key, result)
            return result

    async def get_summary(self, bill_id: str, timeout: Optional[float] = None) -> Summary:
        """
        Summary of the latest known version of a bill.

        Regenerates when no summary exists or the cached one was derived
        from an older version.

        Raises:
            NotFound: the bill has no text versions
            SummarizationUnavailable, Unauthorized, UpstreamUnavailable
        """
        bill_id = self.adapter.require(bill_id, "bill_id")

        with self._track("get_summary", bill_id) as request:
            request.resolving()
            document = await self._latest_document(bill_id, timeout)

            cached = self._summaries.get(bill_id)
            if cached is not None and cached.source_version == document.version_id:
                logger.debug(f"Summary for {bill_id} v{document.version_id} is current")
                return cached

            return await self._summary_inflight.run(
                (bill_id, document.version_id),
                lambda: self._generate_summary(document),
            )

    async def previous_version(
        self,
        bill_id: str,
        version_id: int,
        timeout: Optional[float] = None
    ) -> int:
        """
        Version immediately preceding version_id.

        Raises:
            VersionNotFound: version_id is unknown, or it is the first version
        """
        bill_id = self.adapter.require(bill_id, "bill_id")
        version_id = self.adapter.require_version(version_id)

        index = await self._version_index(bill_id, timeout)
        if version_id not in index.version_ids:
            raise VersionNotFound(
                f"Bill {bill_id} has no version {version_id}",
                context={"bill_id": bill_id, "version_id": version_id}
            )

        previous = index.previous(version_id)
        if previous is None:
            raise VersionNotFound(
                f"Version {version_id} is the first version of bill {bill_id}",
                context={"bill_id": bill_id, "version_id": version_id}
            )
        return previous

    # MARK: - Resolution

    def _provider_key(self) -> str:
        key = self.settings.legiscan.api_key
        if not key:
            raise Unauthorized("Provider API key is not configured")
        return key

    async def _attempt(self, func: Callable[[], Awaitable[T]]) -> T:
        return await retry_async(
            func,
            max_attempts=self.settings.sync.max_attempts,
            base_delay=self.settings.sync.retry_base_delay,
            max_delay=self.settings.sync.retry_max_delay,
            logger_instance=logger,
        )

    async def _document(
        self,
        bill_id: str,
        version_id: int,
        timeout: Optional[float] = None
    ) -> BillDocument:
        key = self._provider_key()
        try:
            return await self.cache.get_or_fetch(
                DocumentKey(bill_id, version_id),
                lambda: self._attempt(
                    lambda: self.adapter.fetch_bill_text(bill_id, version_id, key, timeout=timeout)
                ),
            )
        except VersionNotFound:
            raise
        except NotFound as e:
            raise VersionNotFound(
                f"Bill {bill_id} has no version {version_id}",
                context={"bill_id": bill_id, "version_id": version_id, "reason": e.message}
            )

    async def _version_index(
        self,
        bill_id: str,
        timeout: Optional[float] = None
    ) -> BillVersionIndex:
        key = self._provider_key()
        return await self.cache.get_or_fetch(
            VersionIndexKey(bill_id),
            lambda: self._attempt(
                lambda: self.adapter.fetch_bill_versions(bill_id, key, timeout=timeout)
            ),
        )

    async def _latest_document(
        self,
        bill_id: str,
        timeout: Optional[float] = None
    ) -> BillDocument:
        index = await self._version_index(bill_id, timeout)

        # A version cached after the listing was fetched is newer than it knows
        candidates = [v for v in (index.latest, self.cache.latest_version(bill_id)) if v is not None]
        if not candidates:
            raise NotFound(f"Bill {bill_id} has no text versions", context={"bill_id": bill_id})

        return await self._document(bill_id, max(candidates), timeout)

    async def _generate_summary(self, document: BillDocument) -> Summary:
        logger.info(
            f"Generating {self.summarizer.method} summary for bill {document.bill_id} "
            f"v{document.version_id}"
        )
        summary = await self.summarizer.summarize(document)

        current = self._summaries.get(document.bill_id)
        if current is None or current.source_version <= summary.source_version:
            self._summaries[document.bill_id] = summary
        return summary

    # MARK: - Bookkeeping

    def _on_document_stored(self, document: BillDocument) -> None:
        summary = self._summaries.get(document.bill_id)
        if summary is not None and summary.source_version < document.version_id:
            logger.info(
                f"Summary for bill {document.bill_id} v{summary.source_version} superseded "
                f"by v{document.version_id}"
            )
            del self._summaries[document.bill_id]

    def _remember_diff(self, key: DiffKey, result: DiffResult) -> None:
        limit = self.settings.cache.diff_memo_entries
        if limit <= 0:
            return
        self._diffs[key] = result
        while len(self._diffs) > limit:
            self._diffs.popitem(last=False)

    def cached_summary(self, bill_id: str) -> Optional[Summary]:
        """Currently held summary for a bill, if any"""
        return self._summaries.get(bill_id)

    @contextmanager
    def _track(self, operation: str, target: str) -> Iterator[SyncRequest]:
        request = SyncRequest(operation=operation, target=target)
        self.history.append(request)
        try:
            yield request
        except Exception as e:
            request.complete(RequestOutcome.FAILURE, error=type(e).__name__)
            logger.warning(f"{operation} {target} failed: {type(e).__name__}: {e}")
            raise
        except BaseException:
            # Cancellation
            request.complete(RequestOutcome.FAILURE, error="cancelled")
            raise
        else:
            request.complete(RequestOutcome.SUCCESS)
            logger.info(f"{operation} {target} completed in {request.duration_seconds:.3f}s")
