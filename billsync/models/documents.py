"""
Domain models for legislative documents.

Represents the artifacts the engine retrieves (datasets, bill text versions)
and the artifacts it derives from them (diffs, summaries). All models are
frozen: a re-fetch produces a new instance rather than mutating a cached one.

Responsibility: Immutable entities shared across cache, diff, summary, and facade
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


class Dataset(BaseModel):
    """
    Bulk export for a legislative session.

    The payload is the provider's archive, kept as opaque bytes.
    Natural key: session_id
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(description="Provider session identifier")
    payload: bytes = Field(description="Opaque archive bytes as supplied by the provider")
    fetched_at: datetime = Field(default_factory=utcnow)

    # MARK: - Provider metadata
    session_name: Optional[str] = Field(default=None)
    mime: Optional[str] = Field(default=None)
    dataset_hash: Optional[str] = Field(default=None)

    @property
    def size(self) -> int:
        return len(self.payload)


class BillDocument(BaseModel):
    """
    One version of a bill's text.

    Natural key: (bill_id, version_id)
    Example: ("1234567", 2890123)
    """

    model_config = ConfigDict(frozen=True)

    bill_id: str = Field(description="Provider bill identifier")
    version_id: int = Field(
        ge=0,
        description="Provider-assigned document id, increasing per bill"
    )
    text: str = Field(description="Plain text of this version")
    retrieved_at: datetime = Field(default_factory=utcnow)

    # MARK: - Provider metadata
    version_type: Optional[str] = Field(
        default=None,
        description="Provider label for the version (e.g., 'Introduced', 'Amended')"
    )
    version_date: Optional[str] = Field(default=None)
    mime: Optional[str] = Field(default=None)

    @property
    def size(self) -> int:
        """Size of the text in UTF-8 bytes (cache accounting)"""
        return len(self.text.encode("utf-8"))


class BillVersionIndex(BaseModel):
    """Known text versions of a bill, ascending by version id"""

    model_config = ConfigDict(frozen=True)

    bill_id: str
    bill_number: Optional[str] = None
    title: Optional[str] = None
    version_ids: List[int] = Field(default_factory=list)
    fetched_at: datetime = Field(default_factory=utcnow)

    @property
    def latest(self) -> Optional[int]:
        return self.version_ids[-1] if self.version_ids else None

    def previous(self, version_id: int) -> Optional[int]:
        """Version immediately preceding version_id, if any"""
        earlier = [v for v in self.version_ids if v < version_id]
        return earlier[-1] if earlier else None


class OpKind(str, Enum):
    """Edit script operation kind"""
    EQUAL = "equal"
    DELETE = "delete"
    INSERT = "insert"


class DiffOp(BaseModel):
    """Single edit script operation"""

    model_config = ConfigDict(frozen=True)

    kind: OpKind
    text: str


class DiffStats(BaseModel):
    """Token counts for a diff"""

    model_config = ConfigDict(frozen=True)

    inserted: int = 0
    deleted: int = 0
    unchanged: int = 0


class DiffResult(BaseModel):
    """
    Structured difference between two versions of a bill.

    Replaying EQUAL+DELETE ops reproduces the from text; replaying
    EQUAL+INSERT ops reproduces the to text.
    """

    model_config = ConfigDict(frozen=True)

    bill_id: str = ""
    from_version: int = 0
    to_version: int = 0
    granularity: str = "line"
    ops: List[DiffOp] = Field(default_factory=list)
    rendered_html: str = ""
    stats: DiffStats = Field(default_factory=DiffStats)

    @property
    def has_changes(self) -> bool:
        return any(op.kind != OpKind.EQUAL for op in self.ops)

    def source_text(self) -> str:
        """Reconstruct the from text"""
        return "".join(op.text for op in self.ops if op.kind != OpKind.INSERT)

    def target_text(self) -> str:
        """Reconstruct the to text"""
        return "".join(op.text for op in self.ops if op.kind != OpKind.DELETE)


class Summary(BaseModel):
    """Condensed description derived from exactly one BillDocument"""

    model_config = ConfigDict(frozen=True)

    bill_id: str
    source_version: int
    text: str = Field(description="Display-ready HTML")
    method: str = Field(description="Generator that produced the summary")
    generated_at: datetime = Field(default_factory=utcnow)
