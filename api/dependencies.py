"""
Dependency providers for the HTTP boundary.

Responsibility: Process-wide synchronization facade for request handlers
"""

from typing import Optional

from billsync.config import settings
from billsync.services import BillSyncService

_service: Optional[BillSyncService] = None


def get_sync_service() -> BillSyncService:
    """Shared facade; the artifact cache lives as long as the process"""
    global _service
    if _service is None:
        _service = BillSyncService(settings)
    return _service


async def close_sync_service() -> None:
    """Release the shared facade's HTTP clients"""
    global _service
    if _service is not None:
        await _service.close()
        _service = None
