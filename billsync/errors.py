"""
Error taxonomy for the synchronization engine.

Every failure the engine surfaces is a SyncError subclass. The HTTP boundary
turns them into the structured error envelope using status_code; the facade
consults retryable when deciding whether another upstream attempt is allowed.

Responsibility: Typed failures shared by adapters, cache, facade, and API
"""

from typing import Any, Dict, Optional


class SyncError(Exception):
    """Base class for all engine failures"""

    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_envelope(self) -> Dict[str, Any]:
        """Structured error body for the HTTP boundary"""
        return {
            "error": True,
            "message": self.message,
            "code": self.status_code,
        }


class InvalidRequest(SyncError):
    """Caller-supplied input is malformed (missing credentials, equal versions)"""

    status_code = 400


class Unauthorized(SyncError):
    """Credential rejected by the upstream provider"""

    status_code = 401


class NotFound(SyncError):
    """Requested artifact does not exist upstream"""

    status_code = 404


class VersionNotFound(NotFound):
    """A requested bill version does not exist upstream"""


class UpstreamUnavailable(SyncError):
    """Network failure, timeout, or malformed provider response"""

    status_code = 500
    retryable = True


class SummarizationUnavailable(SyncError):
    """Summary could not be produced for the requested document"""

    status_code = 503
