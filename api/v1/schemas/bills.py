"""
Pydantic schemas for bill API responses.

Defines response models for the diff and summary endpoints.

Responsibility: Bill response schemas
"""

from typing import List
from pydantic import BaseModel

from billsync.models.documents import DiffResult, OpKind, Summary


class DiffOpResponse(BaseModel):
    """Single edit script operation."""

    kind: OpKind
    text: str


class BillDiffResponse(BaseModel):
    """Rendered difference between two bill versions."""

    diff: str
    from_version: int
    to_version: int
    granularity: str
    has_changes: bool
    ops: List[DiffOpResponse]

    @classmethod
    def from_result(cls, result: DiffResult) -> "BillDiffResponse":
        return cls(
            diff=result.rendered_html,
            from_version=result.from_version,
            to_version=result.to_version,
            granularity=result.granularity,
            has_changes=result.has_changes,
            ops=[DiffOpResponse(kind=op.kind, text=op.text) for op in result.ops],
        )


class BillSummaryResponse(BaseModel):
    """Summary of the latest bill version."""

    summary: str
    source_version: int
    method: str

    @classmethod
    def from_summary(cls, summary: Summary) -> "BillSummaryResponse":
        return cls(
            summary=summary.text,
            source_version=summary.source_version,
            method=summary.method,
        )
