"""API v1 response schemas."""

from api.v1.schemas.bills import (
    BillDiffResponse,
    BillSummaryResponse,
    DiffOpResponse,
)
from api.v1.schemas.datasets import (
    DatasetBody,
    RawDatasetResponse,
)

__all__ = [
    "BillDiffResponse",
    "BillSummaryResponse",
    "DiffOpResponse",
    "DatasetBody",
    "RawDatasetResponse",
]
