"""Services package for request orchestration"""

from .sync_service import BillSyncService, RequestOutcome, RequestState, SyncRequest

__all__ = [
    "BillSyncService",
    "RequestOutcome",
    "RequestState",
    "SyncRequest",
]
