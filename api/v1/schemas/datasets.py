"""
Pydantic schemas for dataset API responses.

Responsibility: Dataset response schemas
"""

from typing import Optional
from datetime import datetime
import base64
from pydantic import BaseModel

from billsync.models.documents import Dataset
from billsync.utils.hash_utils import hash_bytes


class DatasetBody(BaseModel):
    """Session dataset with the archive as base64."""

    session_id: str
    session_name: Optional[str] = None
    mime: Optional[str] = None
    dataset_hash: Optional[str] = None
    sha256: str
    fetched_at: datetime
    size: int
    zip: str

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "DatasetBody":
        return cls(
            session_id=dataset.session_id,
            session_name=dataset.session_name,
            mime=dataset.mime,
            dataset_hash=dataset.dataset_hash,
            sha256=hash_bytes(dataset.payload),
            fetched_at=dataset.fetched_at,
            size=dataset.size,
            zip=base64.b64encode(dataset.payload).decode("ascii"),
        )


class RawDatasetResponse(BaseModel):
    """Successful raw dataset retrieval."""

    success: bool = True
    dataset: DatasetBody
