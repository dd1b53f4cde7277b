"""
LegiScan-style API adapter for datasets and bill text.

Retrieves bulk session datasets, individual bill text versions, and the
list of text versions known for a bill. Documents arrive base64 encoded;
HTML versions are reduced to plain text with line structure preserved.

Responsibility: Fetch and normalize datasets and bill text from the provider
"""

from typing import Optional, Type, List
import base64
import binascii
import re

from bs4 import BeautifulSoup

from .base_adapter import BaseAdapter
from ..config import LegiScanConfig
from ..errors import (
    SyncError,
    InvalidRequest,
    Unauthorized,
    NotFound,
    UpstreamUnavailable,
)
from ..models.documents import Dataset, BillDocument, BillVersionIndex
from ..models.upstream_models import (
    DatasetResponse,
    BillTextResponse,
    BillTextPayload,
    BillResponse,
)


# Elements that start a new line when HTML text is flattened
BLOCK_TAGS = [
    "p", "div", "br", "li", "tr", "table", "section", "article",
    "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre", "hr",
]

_AUTH_HINTS = re.compile(r"\b(api key|access key|key|auth\w*|permission|denied)\b", re.IGNORECASE)
_MISSING_HINTS = re.compile(r"(not found|unknown|no such|does not exist|invalid id)", re.IGNORECASE)


def html_to_text(raw: bytes) -> str:
    """
    Flatten an HTML bill document to plain text.

    Block elements become line boundaries; whitespace inside a line is
    collapsed and blank lines are dropped, so the same document always
    yields the same lines.
    """
    soup = BeautifulSoup(raw, "html.parser")

    for tag in soup(["script", "style", "head"]):
        tag.decompose()

    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before("\n")
        tag.insert_after("\n")

    lines = []
    for line in soup.get_text().splitlines():
        collapsed = " ".join(line.split())
        if collapsed:
            lines.append(collapsed)

    return "\n".join(lines)


class LegiScanAdapter(BaseAdapter):
    """
    Adapter for the legislative-data provider.

    Key features:
    - Session datasets (opaque archive passthrough)
    - Bill text versions addressed by (bill_id, version_id)
    - Version listings used to resolve the latest text of a bill
    - Rate limited per LegiScanConfig

    Example:
        adapter = LegiScanAdapter(settings.legiscan)
        document = await adapter.fetch_bill_text("1234567", 2890123, api_key)
    """

    def __init__(self, config: Optional[LegiScanConfig] = None, client=None):
        """
        Initialize provider adapter.

        Args:
            config: Provider settings (defaults to environment configuration)
            client: Optional httpx.AsyncClient (tests inject a mock transport)
        """
        config = config or LegiScanConfig()
        super().__init__(
            source_name="legiscan",
            base_url=config.base_url,
            rate_limit_per_second=config.rate_limit_per_second,
            rate_limit_burst=config.rate_limit_burst,
            timeout_seconds=config.timeout_seconds,
            user_agent=config.user_agent,
            client=client
        )
        self.api_key = config.api_key

    def classify_alert(self, message: str) -> Type[SyncError]:
        if _AUTH_HINTS.search(message):
            return Unauthorized
        if _MISSING_HINTS.search(message):
            return NotFound
        return UpstreamUnavailable

    async def fetch_dataset(
        self,
        session_id: str,
        access_key: str,
        timeout: Optional[float] = None
    ) -> Dataset:
        """
        Fetch the bulk dataset for a session.

        Args:
            session_id: Provider session id
            access_key: Dataset access key issued for the session
            timeout: Per-call time budget in seconds

        Returns:
            Dataset with the archive as opaque bytes

        Raises:
            InvalidRequest: session_id or access_key missing
            Unauthorized, NotFound, UpstreamUnavailable
        """
        session_id = self.require(session_id, "id")
        access_key = self.require(access_key, "access_key")
        if not self.api_key:
            raise Unauthorized("Provider API key is not configured")

        self.logger.info(f"Fetching dataset for session {session_id}")

        response = await self.request(
            "getDataset",
            {"key": self.api_key, "id": session_id, "access_key": access_key},
            DatasetResponse,
            timeout=timeout
        )
        payload = response.dataset

        if str(payload.session_id) != session_id:
            raise UpstreamUnavailable(
                f"Dataset response was for session {payload.session_id}, expected {session_id}"
            )

        archive = self._decode_base64(payload.zip, "getDataset")

        self.logger.info(f"Fetched dataset for session {session_id} ({len(archive)} bytes)")

        return Dataset(
            session_id=session_id,
            payload=archive,
            session_name=payload.session_name,
            mime=payload.mime,
            dataset_hash=payload.dataset_hash,
        )

    async def fetch_bill_text(
        self,
        bill_id: str,
        version_id: int,
        access_key: str,
        timeout: Optional[float] = None
    ) -> BillDocument:
        """
        Fetch one text version of a bill.

        Args:
            bill_id: Provider bill id
            version_id: Provider document id of the version
            access_key: Provider API key
            timeout: Per-call time budget in seconds

        Returns:
            BillDocument with plain text

        Raises:
            InvalidRequest: missing id or key, or non-integer version
            NotFound: version unknown, or it belongs to another bill
            Unauthorized, UpstreamUnavailable
        """
        bill_id = self.require(bill_id, "bill_id")
        access_key = self.require(access_key, "access_key")
        version_id = self.require_version(version_id)

        response = await self.request(
            "getBillText",
            {"key": access_key, "id": version_id},
            BillTextResponse,
            timeout=timeout
        )
        payload = response.text

        if str(payload.bill_id) != bill_id:
            raise NotFound(
                f"Version {version_id} does not belong to bill {bill_id}",
                context={"bill_id": bill_id, "version_id": version_id}
            )
        if payload.doc_id != version_id:
            raise UpstreamUnavailable(
                f"getBillText returned document {payload.doc_id}, expected {version_id}"
            )

        return self.normalize(bill_id, payload)

    async def fetch_bill_versions(
        self,
        bill_id: str,
        access_key: str,
        timeout: Optional[float] = None
    ) -> BillVersionIndex:
        """
        Fetch the text versions the provider lists for a bill.

        Returns:
            BillVersionIndex with version ids ascending
        """
        bill_id = self.require(bill_id, "bill_id")
        access_key = self.require(access_key, "access_key")

        response = await self.request(
            "getBill",
            {"key": access_key, "id": bill_id},
            BillResponse,
            timeout=timeout
        )
        bill = response.bill

        if str(bill.bill_id) != bill_id:
            raise UpstreamUnavailable(
                f"getBill returned bill {bill.bill_id}, expected {bill_id}"
            )

        version_ids: List[int] = sorted({ref.doc_id for ref in bill.texts})

        return BillVersionIndex(
            bill_id=bill_id,
            bill_number=bill.bill_number,
            title=bill.title,
            version_ids=version_ids,
        )

    def normalize(self, bill_id: str, payload: BillTextPayload) -> BillDocument:
        """
        Convert a getBillText payload into a BillDocument.

        Raises:
            UpstreamUnavailable: undecodable document or unsupported MIME type
        """
        raw = self._decode_base64(payload.doc, "getBillText")
        mime = payload.mime.split(";")[0].strip().lower()

        if mime == "text/html":
            text = html_to_text(raw)
        elif mime == "text/plain":
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                raise UpstreamUnavailable(
                    f"Bill text {payload.doc_id} is not valid UTF-8"
                )
        else:
            raise UpstreamUnavailable(
                f"Bill text {payload.doc_id} has unsupported type {payload.mime}"
            )

        return BillDocument(
            bill_id=bill_id,
            version_id=payload.doc_id,
            text=text,
            version_type=payload.type,
            version_date=payload.date,
            mime=mime,
        )

    @staticmethod
    def require_version(version_id) -> int:
        if isinstance(version_id, bool):
            raise InvalidRequest("version_id must be an integer")
        try:
            value = int(version_id)
        except (TypeError, ValueError):
            raise InvalidRequest(f"version_id must be an integer, got {version_id!r}")
        if value < 0:
            raise InvalidRequest("version_id must not be negative")
        return value

    @staticmethod
    def _decode_base64(data: str, operation: str) -> bytes:
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise UpstreamUnavailable(f"{operation} returned a document that is not valid base64")
