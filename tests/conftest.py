"""Shared fixtures: a fake provider behind httpx.MockTransport."""

from typing import Callable, Dict, List, Optional
import base64

import httpx
import pytest

from billsync.adapters import LegiScanAdapter
from billsync.cache import ArtifactCache
from billsync.config import CacheConfig, LegiScanConfig, Settings, SummaryConfig, SyncConfig
from billsync.services import BillSyncService
from billsync.summary import ExtractiveSummarizer


API_KEY = "test-api-key"


def b64(data) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def make_settings(**sync_overrides) -> Settings:
    return Settings(
        legiscan=LegiScanConfig(
            api_key=API_KEY,
            base_url="https://provider.test",
            rate_limit_per_second=1000.0,
            rate_limit_burst=1000,
            timeout_seconds=5.0,
        ),
        cache=CacheConfig(),
        summary=SummaryConfig(),
        sync=SyncConfig(**sync_overrides),
    )


class FakeProvider:
    """
    In-memory stand-in for the provider API.

    bills maps bill_id → {version_id: text}; datasets maps session_id →
    (access_key, archive bytes). Requests are recorded for assertions.
    """

    def __init__(self):
        self.bills: Dict[str, Dict[int, str]] = {}
        self.datasets: Dict[str, tuple] = {}
        self.requests: List[httpx.Request] = []
        self.override: Optional[Callable[[httpx.Request], Optional[httpx.Response]]] = None

    def add_bill(self, bill_id: str, versions: Dict[int, str]) -> None:
        self.bills[bill_id] = dict(versions)

    def calls(self, op: str) -> int:
        return sum(1 for r in self.requests if r.url.params.get("op") == op)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.override is not None:
            response = self.override(request)
            if response is not None:
                return response

        params = request.url.params
        if params.get("key") != API_KEY:
            return _error("Invalid API key")

        op = params.get("op")
        if op == "getDataset":
            return self._dataset(params)
        if op == "getBillText":
            return self._bill_text(int(params["id"]))
        if op == "getBill":
            return self._bill(params["id"])
        return _error(f"Unknown operation {op}")

    def _dataset(self, params) -> httpx.Response:
        entry = self.datasets.get(params.get("id"))
        if entry is None:
            return _error("Unknown session id")
        access_key, archive = entry
        if params.get("access_key") != access_key:
            return _error("Invalid access key")
        return httpx.Response(200, json={
            "status": "OK",
            "dataset": {
                "session_id": int(params["id"]),
                "session_name": "2025 Regular Session",
                "dataset_hash": "abc123",
                "mime": "application/zip",
                "zip": b64(archive),
            },
        })

    def _bill_text(self, doc_id: int) -> httpx.Response:
        for bill_id, versions in self.bills.items():
            if doc_id in versions:
                return httpx.Response(200, json={
                    "status": "OK",
                    "text": {
                        "doc_id": doc_id,
                        "bill_id": int(bill_id),
                        "date": "2025-01-15",
                        "type": "Introduced",
                        "mime": "text/plain",
                        "doc": b64(versions[doc_id]),
                    },
                })
        return _error("Unknown document id")

    def _bill(self, bill_id: str) -> httpx.Response:
        versions = self.bills.get(bill_id)
        if versions is None:
            return _error("Unknown bill id")
        return httpx.Response(200, json={
            "status": "OK",
            "bill": {
                "bill_id": int(bill_id),
                "bill_number": "HB1",
                "title": "Digital asset act",
                "texts": [{"doc_id": v, "type": "Introduced"} for v in versions],
            },
        })


def _error(message: str) -> httpx.Response:
    return httpx.Response(200, json={"status": "ERROR", "alert": {"message": message}})


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def adapter(provider, settings) -> LegiScanAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(provider.handler))
    return LegiScanAdapter(settings.legiscan, client=client)


@pytest.fixture
def service(adapter, settings) -> BillSyncService:
    return BillSyncService(
        settings,
        adapter=adapter,
        cache=ArtifactCache(max_document_bytes=settings.cache.max_document_bytes),
        summarizer=ExtractiveSummarizer(max_sentences=2),
    )
