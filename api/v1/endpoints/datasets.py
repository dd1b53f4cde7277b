"""
Dataset API endpoints.

Responsibility: Raw session dataset pass-through for API v1
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from billsync.services import BillSyncService
from api.dependencies import get_sync_service
from api.v1.schemas.datasets import DatasetBody, RawDatasetResponse

router = APIRouter()


@router.get("/datasets/raw", response_model=RawDatasetResponse)
async def get_raw_dataset(
    session_id: Optional[str] = Query(None, alias="id", description="Provider session id"),
    access_key: Optional[str] = Query(None, description="Dataset access key"),
    refresh: bool = Query(False, description="Bypass the cached dataset"),
    service: BillSyncService = Depends(get_sync_service)
):
    """
    Bulk dataset for a session, archive base64-encoded.

    Missing id or access_key is rejected by the facade before any upstream call.
    """
    dataset = await service.get_raw_dataset(session_id or "", access_key or "", refresh=refresh)
    return RawDatasetResponse(dataset=DatasetBody.from_dataset(dataset))
