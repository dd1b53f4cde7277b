"""
Bills API endpoints.

Provides version diffs and summaries for a bill.

Responsibility: Bill endpoints for API v1
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from billsync.services import BillSyncService
from api.dependencies import get_sync_service
from api.v1.schemas.bills import BillDiffResponse, BillSummaryResponse

router = APIRouter()


@router.get("/bills/{bill_id}/diff", response_model=BillDiffResponse)
async def get_bill_diff(
    bill_id: str,
    amendment_id: int = Query(..., alias="amendmentId", ge=0, description="Version to compare"),
    from_version: Optional[int] = Query(
        None,
        alias="fromVersion",
        ge=0,
        description="Base version (defaults to the version preceding amendmentId)"
    ),
    granularity: Optional[str] = Query(None, description="line or word"),
    service: BillSyncService = Depends(get_sync_service)
):
    """
    Diff a bill version against an earlier one.

    Args:
        bill_id: Provider bill id
        amendment_id: Version whose changes are shown
        from_version: Base version to compare against
        granularity: Token unit of the diff

    Returns:
        BillDiffResponse with rendered HTML and the edit script
    """
    if from_version is None:
        from_version = await service.previous_version(bill_id, amendment_id)

    result = await service.get_diff(bill_id, from_version, amendment_id, granularity)
    return BillDiffResponse.from_result(result)


@router.get("/bills/{bill_id}/summary", response_model=BillSummaryResponse)
async def get_bill_summary(
    bill_id: str,
    service: BillSyncService = Depends(get_sync_service)
):
    """Summary of the latest version of a bill."""
    summary = await service.get_summary(bill_id)
    return BillSummaryResponse.from_summary(summary)
