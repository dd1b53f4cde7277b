import base64

import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_sync_service
from api.main import app
from billsync.cache import DocumentKey, VersionIndexKey
from billsync.errors import SummarizationUnavailable
from billsync.models.documents import BillDocument, BillVersionIndex


@pytest.fixture
def client(service):
    app.dependency_overrides[get_sync_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_raw_dataset(client, provider) -> None:
    provider.datasets["2041"] = ("session-key", b"PK\x03\x04archive")

    response = client.get("/api/datasets/raw", params={"id": "2041", "access_key": "session-key"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["dataset"]["session_id"] == "2041"
    assert base64.b64decode(body["dataset"]["zip"]) == b"PK\x03\x04archive"
    assert body["dataset"]["size"] == len(b"PK\x03\x04archive")


def test_raw_dataset_missing_access_key(client, service) -> None:
    response = client.get("/api/datasets/raw", params={"id": "2041"})

    assert response.status_code == 400
    assert response.json() == {
        "error": True,
        "message": "Missing required parameter: access_key",
        "code": 400,
    }
    assert service.adapter.call_count == 0


def test_raw_dataset_upstream_failure(client, provider) -> None:
    provider.override = lambda request: httpx.Response(502)

    response = client.get("/api/datasets/raw", params={"id": "2041", "access_key": "k"})

    assert response.status_code == 500
    assert response.json()["error"] is True


def test_diff_defaults_to_previous_version(client, provider) -> None:
    provider.add_bill("1001", {1: "Line A\nLine B", 2: "Line A\nLine C"})

    response = client.get("/api/bills/1001/diff", params={"amendmentId": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["from_version"] == 1
    assert body["to_version"] == 2
    assert [op["kind"] for op in body["ops"]] == ["equal", "delete", "insert"]
    assert '<del class="diff-delete">Line B</del>' in body["diff"]
    assert '<ins class="diff-insert">Line C</ins>' in body["diff"]


def test_diff_with_explicit_from_version(client, service) -> None:
    service.cache.put(DocumentKey("1001", 3), BillDocument(bill_id="1001", version_id=3, text="old <b>\n"))
    service.cache.put(DocumentKey("1001", 9), BillDocument(bill_id="1001", version_id=9, text="new <b>\n"))

    response = client.get(
        "/api/bills/1001/diff",
        params={"amendmentId": 9, "fromVersion": 3, "granularity": "word"},
    )

    assert response.status_code == 200
    assert "&lt;b&gt;" in response.json()["diff"]
    assert response.json()["granularity"] == "word"


def test_diff_requires_amendment_id(client) -> None:
    response = client.get("/api/bills/1001/diff")

    assert response.status_code == 400
    assert response.json()["error"] is True
    assert "amendmentId" in response.json()["message"]


def test_diff_equal_versions(client) -> None:
    response = client.get("/api/bills/1001/diff", params={"amendmentId": 4, "fromVersion": 4})

    assert response.status_code == 400


def test_diff_unknown_version(client, provider) -> None:
    provider.add_bill("1001", {1: "a"})

    response = client.get("/api/bills/1001/diff", params={"amendmentId": 5, "fromVersion": 1})

    assert response.status_code == 404
    assert response.json()["code"] == 404


def test_summary(client, service) -> None:
    service.cache.put(VersionIndexKey("1001"), BillVersionIndex(bill_id="1001", version_ids=[2]))
    service.cache.put(
        DocumentKey("1001", 2),
        BillDocument(bill_id="1001", version_id=2, text="The department shall license digital asset exchanges."),
    )

    response = client.get("/api/bills/1001/summary")

    assert response.status_code == 200
    assert response.json()["source_version"] == 2
    assert response.json()["summary"].startswith("<p>")


def test_summary_unavailable(client, service) -> None:
    async def fail(document):
        raise SummarizationUnavailable("backend offline")

    service.summarizer.summarize = fail
    service.cache.put(VersionIndexKey("1001"), BillVersionIndex(bill_id="1001", version_ids=[2]))
    service.cache.put(DocumentKey("1001", 2), BillDocument(bill_id="1001", version_id=2, text="text"))

    response = client.get("/api/bills/1001/summary")

    assert response.status_code == 503
    assert response.json() == {"error": True, "message": "backend offline", "code": 503}
