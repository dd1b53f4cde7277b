"""
Base adapter for upstream data sources.

Owns the HTTP client, rate limiter, per-call timeouts, and the mapping from
transport outcomes to the engine's error taxonomy. Adapters built on it make
exactly one network call per request and never retry; retries are decided
by the synchronization facade.

Responsibility: Abstract base class defining the upstream call contract
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, TypeVar
import asyncio
import logging

import httpx
from pydantic import BaseModel, ValidationError

from ..errors import (
    SyncError,
    InvalidRequest,
    Unauthorized,
    NotFound,
    UpstreamUnavailable,
)
from ..models.upstream_models import ProviderEnvelope
from ..utils.rate_limiter import RateLimiter


M = TypeVar('M', bound=ProviderEnvelope)


class BaseAdapter(ABC):
    """
    Abstract base class for upstream adapters.

    Every adapter MUST:
    1. Validate caller input before any I/O (InvalidRequest)
    2. Acquire self.rate_limiter before each call
    3. Parse responses into explicit pydantic models (no raw dicts inward)
    4. Raise SyncError subclasses, never return empty results on failure

    Subclasses implement classify_alert() to map provider error messages
    onto Unauthorized / NotFound / UpstreamUnavailable.
    """

    def __init__(
        self,
        source_name: str,
        base_url: str,
        rate_limit_per_second: float = 1.0,
        rate_limit_burst: int = 1,
        timeout_seconds: float = 30.0,
        user_agent: str = "BillSync/1.0",
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize base adapter.

        Args:
            source_name: Identifier for this adapter (e.g., "legiscan")
            base_url: Provider endpoint
            rate_limit_per_second: Maximum sustained requests per second
            rate_limit_burst: Requests allowed back to back
            timeout_seconds: Default per-call timeout
            user_agent: User-Agent header value
            client: Preconfigured HTTP client (tests inject a mock transport)
        """
        self.source_name = source_name
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

        self.rate_limiter = RateLimiter(
            rate=rate_limit_per_second,
            burst=rate_limit_burst
        )

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            headers={
                "User-Agent": user_agent,
                "Accept": "application/json"
            },
            follow_redirects=True
        )

        self.call_count = 0
        self.logger = logging.getLogger(f"adapter.{source_name}")

    @abstractmethod
    def classify_alert(self, message: str) -> Type[SyncError]:
        """
        Map a provider error message to an error class.

        Args:
            message: Human-readable alert from the provider

        Returns:
            Unauthorized, NotFound, or UpstreamUnavailable
        """
        pass

    @staticmethod
    def require(value: Any, name: str) -> str:
        """Reject missing or blank identifiers and credentials"""
        if value is None:
            raise InvalidRequest(f"Missing required parameter: {name}")
        text = str(value).strip()
        if not text:
            raise InvalidRequest(f"Missing required parameter: {name}")
        return text

    async def request(
        self,
        operation: str,
        params: Dict[str, Any],
        response_model: Type[M],
        timeout: Optional[float] = None
    ) -> M:
        """
        Perform one provider call and parse it into response_model.

        Args:
            operation: Provider operation name (sent as op=...)
            params: Query parameters, credentials included
            response_model: Envelope model describing the expected shape
            timeout: Total time budget for this call (defaults to adapter timeout)

        Returns:
            Parsed response

        Raises:
            Unauthorized, NotFound, UpstreamUnavailable
        """
        budget = timeout if timeout is not None else self.timeout_seconds
        query = {"op": operation, **params}

        await self.rate_limiter.acquire()
        self.call_count += 1

        # Query strings carry credentials, only the path is logged
        self.logger.info(f"GET {self.base_url}/ op={operation}")

        try:
            response = await asyncio.wait_for(
                self.client.get(f"{self.base_url}/", params=query, timeout=budget),
                timeout=budget
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            self.logger.warning(f"{operation} timed out after {budget}s")
            raise UpstreamUnavailable(
                f"{self.source_name} {operation} timed out after {budget}s",
                context={"operation": operation}
            )
        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error during {operation}: {type(e).__name__}")
            raise UpstreamUnavailable(
                f"{self.source_name} {operation} failed: {type(e).__name__}",
                context={"operation": operation}
            )

        self._check_status(operation, response)

        try:
            body = response.json()
        except ValueError:
            raise UpstreamUnavailable(
                f"{self.source_name} {operation} returned invalid JSON",
                context={"operation": operation}
            )

        if not isinstance(body, dict):
            raise UpstreamUnavailable(
                f"{self.source_name} {operation} returned unexpected payload type",
                context={"operation": operation}
            )

        envelope = self._parse(operation, body, ProviderEnvelope)
        if not envelope.ok:
            message = envelope.alert.message if envelope.alert else "Unknown error"
            error_cls = self.classify_alert(message)
            self.logger.warning(f"{operation} rejected by provider: {message}")
            raise error_cls(message, context={"operation": operation})

        return self._parse(operation, body, response_model)

    def _check_status(self, operation: str, response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        context = {"operation": operation, "status_code": status}
        if status in (401, 403):
            raise Unauthorized(f"{self.source_name} rejected credentials", context=context)
        if status == 404:
            raise NotFound(f"{self.source_name} {operation}: not found", context=context)

        self.logger.error(f"{operation} failed with HTTP {status}")
        raise UpstreamUnavailable(
            f"{self.source_name} {operation} failed with HTTP {status}",
            context=context
        )

    def _parse(self, operation: str, body: Dict[str, Any], model: Type[BaseModel]) -> Any:
        try:
            return model.model_validate(body)
        except ValidationError as e:
            self.logger.error(
                f"Malformed {operation} response: {e.error_count()} validation errors"
            )
            raise UpstreamUnavailable(
                f"{self.source_name} {operation} returned an unexpected response shape",
                context={"operation": operation}
            )

    async def close(self) -> None:
        """Close the HTTP client if this adapter created it"""
        if self._owns_client:
            await self.client.aclose()
