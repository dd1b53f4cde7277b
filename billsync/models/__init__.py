"""
Models package for BillSync.

This package contains all Pydantic models for:
- Domain entities (datasets, bill versions, diffs, summaries)
- Validated upstream provider responses
"""

from .documents import (
    Dataset,
    BillDocument,
    BillVersionIndex,
    OpKind,
    DiffOp,
    DiffStats,
    DiffResult,
    Summary,
)

__all__ = [
    "Dataset",
    "BillDocument",
    "BillVersionIndex",
    "OpKind",
    "DiffOp",
    "DiffStats",
    "DiffResult",
    "Summary",
]
