"""
BillSync - legislative document synchronization and differencing engine.

Retrieves datasets and bill text from the upstream provider, caches them,
diffs bill versions, and summarizes bill text.
"""

__version__ = "1.0.0"

from .errors import (
    SyncError,
    InvalidRequest,
    Unauthorized,
    NotFound,
    VersionNotFound,
    UpstreamUnavailable,
    SummarizationUnavailable,
)
from .services import BillSyncService

__all__ = [
    "SyncError",
    "InvalidRequest",
    "Unauthorized",
    "NotFound",
    "VersionNotFound",
    "UpstreamUnavailable",
    "SummarizationUnavailable",
    "BillSyncService",
]
