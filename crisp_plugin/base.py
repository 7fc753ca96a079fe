"""
Base classes for the Crisp plugin client.

This module defines the transport seam every plugin operation goes
through, plus the error hierarchy and configuration it relies on.

Design Principles:
1. Async-first: All I/O operations are async
2. Type-safe: Pydantic models for all decoded data
3. One round-trip per call: no retry, no backoff, no pagination loop
4. Testable: PluginService depends on the Transport protocol only

Error Mapping:
    - 401/403 -> AuthenticationError
    - 404     -> NotFoundError
    - 400/422 -> ValidationError
    - 429     -> RateLimitError
    - other non-2xx -> CrispError
    - timeouts, network errors -> TransportError
    - undecodable success bodies -> DecodeError
    - unserializable request bodies -> EncodingError
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, Generic, Protocol, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.crisp.chat/v1/"
DEFAULT_USER_AGENT = "crisp-plugin-python/0.1.0"


# =============================================================================
# Exceptions
# =============================================================================


class CrispError(Exception):
    """Base exception for Crisp API errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
        reason: str | None = None,
        response: Response | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.reason = reason
        self.response = response

    def __str__(self) -> str:
        parts = [f"[crisp] {self.args[0]}"]
        if self.status_code:
            parts.append(f"(status={self.status_code})")
        return " ".join(parts)


class AuthenticationError(CrispError):
    """Raised when authentication fails (401/403)."""


class NotFoundError(CrispError):
    """Raised when a resource is not found (404)."""


class ValidationError(CrispError):
    """Raised when the API rejects a request (400/422)."""


class RateLimitError(CrispError):
    """Raised when rate limit is exceeded (429)."""

    def __init__(self, message: str, *, retry_after: float | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class TransportError(CrispError):
    """Raised when no response could be obtained (timeout, network)."""


class DecodeError(CrispError):
    """Raised when a successful response body cannot be decoded."""


class EncodingError(CrispError):
    """Raised when a request parameter cannot be encoded locally."""


# =============================================================================
# Configuration
# =============================================================================


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() == "true"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Configuration for the Crisp HTTP transport."""

    # Authentication
    identifier: str = ""
    key: str = field(default="", repr=False)
    tier: str = "plugin"

    # Connection
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT

    # Observability
    log_requests: bool = False
    log_responses: bool = False

    def __post_init__(self):
        """Validate configuration."""
        if not self.identifier:
            raise ValueError("Crisp token identifier is required")
        if not self.key:
            raise ValueError("Crisp token key is required")
        if not self.tier:
            raise ValueError("Crisp tier is required")

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build configuration from CRISP_* environment variables."""
        return cls(
            identifier=os.getenv("CRISP_IDENTIFIER", ""),
            key=os.getenv("CRISP_KEY", ""),
            tier=os.getenv("CRISP_TIER", "plugin"),
            base_url=os.getenv("CRISP_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.getenv("CRISP_TIMEOUT", "30")),
            log_requests=_env_flag("CRISP_LOG_REQUESTS"),
            log_responses=_env_flag("CRISP_LOG_RESPONSES"),
        )


# =============================================================================
# Request / Response Types
# =============================================================================

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class Request:
    """A request ready for execution, relative to the API base URL."""

    method: str
    path: str
    body: Any = None

    @property
    def has_body(self) -> bool:
        return self.body is not None


@dataclass(frozen=True, slots=True)
class Response:
    """Raw outcome of a round-trip: status and headers."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    raw: httpx.Response | None = field(default=None, compare=False, repr=False)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> Response:
        return cls(
            status_code=response.status_code,
            headers=dict(response.headers),
            raw=response,
        )


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Unwrapped payload of an envelope together with the raw response."""

    data: T | None
    response: Response


# =============================================================================
# Transport
# =============================================================================


class Transport(Protocol):
    """The shared collaborator every plugin operation is dispatched through."""

    def build_request(self, method: str, path: str, body: Any = None) -> Request: ...

    async def execute(
        self,
        request: Request,
        into: type[M] | None = None,
    ) -> tuple[Response, M | None]: ...


class HttpTransport:
    """
    httpx-backed transport for the Crisp REST API.

    Provides:
    - HTTP client management (lazy creation, close)
    - Basic authentication and tier header injection
    - Error mapping to CrispError subtypes
    - Request/response logging

    It performs a single attempt per request; timeouts are the only
    time-bound behaviour and come from the configuration.
    """

    def __init__(self, config: ClientConfig, *, http_transport: httpx.AsyncBaseTransport | None = None):
        """
        Initialize the transport.

        Args:
            config: Client configuration
            http_transport: Optional httpx transport (used to plug in mocks)
        """
        self.config = config
        self._http_transport = http_transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                auth=(self.config.identifier, self.config.key),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "User-Agent": self.config.user_agent,
                    "X-Crisp-Tier": self.config.tier,
                },
                transport=self._http_transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_request(self, method: str, path: str, body: Any = None) -> Request:
        return Request(method=method.upper(), path=path.lstrip("/"), body=body)

    async def execute(
        self,
        request: Request,
        into: type[M] | None = None,
    ) -> tuple[Response, M | None]:
        """
        Execute a single HTTP request and decode its body.

        Args:
            request: Request built by build_request
            into: Model class to decode the JSON body into, if any

        Returns:
            The raw response and the decoded model (None when nothing
            was decoded)

        Raises:
            CrispError: On any transport, status or decoding failure
        """
        client = await self._get_client()

        if self.config.log_requests:
            logger.debug(f"[crisp] {request.method} {request.path} body={request.body}")

        try:
            http_request = client.build_request(
                request.method,
                request.path,
                json=request.body if request.has_body else None,
            )
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Cannot encode request body: {e}") from e

        try:
            http_response = await client.send(http_request)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}") from e
        except httpx.NetworkError as e:
            raise TransportError(f"Network error: {e}") from e
        except httpx.DecodingError as e:
            raise DecodeError(f"Undecodable response body: {e}") from e
        except httpx.TooManyRedirects as e:
            raise TransportError(f"Too many redirects: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Transport error: {e}") from e

        response = Response.from_httpx(http_response)

        if self.config.log_responses:
            logger.debug(
                f"[crisp] Response: status={response.status_code} "
                f"body={http_response.text[:500] if http_response.text else 'empty'}"
            )

        self._check_response(http_response, response)

        if into is None or request.method == "HEAD" or not http_response.content:
            return response, None

        return response, self._decode(http_response, response, into)

    def _decode(
        self,
        http_response: httpx.Response,
        response: Response,
        into: type[M],
    ) -> M:
        """Decode a JSON body into the requested model."""
        try:
            return into.model_validate_json(http_response.content)
        except SchemaValidationError as e:
            raise DecodeError(
                f"Malformed response body: {e}",
                status_code=response.status_code,
                response_body=http_response.text,
                response=response,
            ) from e

    def _check_response(self, http_response: httpx.Response, response: Response) -> None:
        """
        Check response for errors and raise appropriate exceptions.

        Raises:
            AuthenticationError: For 401/403
            RateLimitError: For 429
            NotFoundError: For 404
            ValidationError: For 400/422
            CrispError: For other errors
        """
        if response.is_success:
            return

        status = response.status_code
        body = http_response.text
        reason = _error_reason(http_response)
        detail = reason or body
        common = {
            "status_code": status,
            "response_body": body,
            "reason": reason,
            "response": response,
        }

        logger.warning(f"[crisp] {http_response.request.method} {http_response.request.url.path} failed: {status}")

        if status == 401 or status == 403:
            raise AuthenticationError(f"Authentication failed: {detail}", **common)

        if status == 429:
            raise RateLimitError(
                "Rate limit exceeded",
                retry_after=_parse_retry_after(http_response.headers.get("Retry-After")),
                **common,
            )

        if status == 404:
            raise NotFoundError(f"Resource not found: {detail}", **common)

        if status == 400 or status == 422:
            raise ValidationError(f"Validation error: {detail}", **common)

        raise CrispError(f"Request failed: {detail}", **common)

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _error_reason(http_response: httpx.Response) -> str | None:
    """Extract the `reason` of a Crisp error body, if there is one."""
    try:
        payload = http_response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("reason"), str):
        return payload["reason"]
    return None


def _parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a Retry-After header (delay-seconds or HTTP-date)."""
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max((when - datetime.now(UTC)).total_seconds(), 0.0)
