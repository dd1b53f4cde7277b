"""
Cache package for BillSync.

Artifact storage and the in-flight fetch coordination it is built on.
"""

from .inflight import InflightRegistry
from .artifact_cache import (
    ArtifactCache,
    CacheStats,
    DatasetKey,
    DocumentKey,
    VersionIndexKey,
)

__all__ = [
    "InflightRegistry",
    "ArtifactCache",
    "CacheStats",
    "DatasetKey",
    "DocumentKey",
    "VersionIndexKey",
]
