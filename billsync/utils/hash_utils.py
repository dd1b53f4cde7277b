"""Content hashing for opaque upstream payloads."""

from __future__ import annotations

import hashlib


def hash_bytes(data: bytes) -> str:
    """SHA-256 of an opaque blob."""
    return hashlib.sha256(data).hexdigest()
