"""
Base source client: one request to one provider, typed result out.

Provides a reusable foundation for every provider integration. The public
``fetch`` never raises: timeouts, HTTP errors, network errors and
malformed payloads all come back as a failed FetchResult. No retries are
attempted inside one aggregation call; the caller retries the whole call.
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional, Any

import httpx

from envfusion.core.api_errors import (
    APIError,
    ConfigurationError,
    FatalError,
    FetchErrorCode,
    MalformedPayloadError,
    classify_http_error,
)
from envfusion.core.models import Category, FetchResult, Location
from envfusion.core.source_registry import SourceDescriptor, get_source

logger = logging.getLogger(__name__)


class BaseSourceClient(ABC):
    """
    Base class for all provider clients.

    Provides unified:
    - Lazily created ``httpx.AsyncClient`` with connection pooling
    - Per-call timeout enforcement (reported, never raised)
    - Standardized HTTP error classification
    - JSON / text helpers that raise APIError subclasses internally

    Subclasses should:
    - Set SOURCE_ID (must exist in the source registry, or pass a descriptor)
    - Implement ``_fetch_payload`` returning the raw provider payload
    - Override ``_check_api_error`` for API-specific error bodies
    """

    # Override in subclass
    SOURCE_ID: str = "unknown"
    REQUIRES_API_KEY: bool = False

    DEFAULT_TIMEOUT: float = 15.0
    DEFAULT_CONNECT_TIMEOUT: float = 10.0
    USER_AGENT: str = "envfusion/0.1 (environmental data aggregation)"

    def __init__(
        self,
        api_key: Optional[str] = None,
        descriptor: Optional[SourceDescriptor] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Provider credential, if the provider needs one
            descriptor: Registry entry (looked up by SOURCE_ID when omitted)
            timeout: Default per-call timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        descriptor = descriptor or get_source(self.SOURCE_ID)
        if descriptor is None:
            raise ValueError(f"No registry entry for source '{self.SOURCE_ID}'")

        self.descriptor = descriptor
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.debug(
            f"Initialized {self.source_id} client: "
            f"api_key_present={api_key is not None}, timeout={timeout}"
        )

    @property
    def source_id(self) -> str:
        return self.descriptor.source_id

    @property
    def base_url(self) -> str:
        return self.descriptor.base_url.rstrip("/")

    def is_configured(self) -> bool:
        """False when a required credential is missing."""
        return not self.REQUIRES_API_KEY or bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=self.DEFAULT_CONNECT_TIMEOUT),
                follow_redirects=True,
                headers=self._build_headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug(f"{self.source_id} client closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _build_headers(self) -> Dict[str, str]:
        """
        Build request headers.

        Override to add API-specific headers (e.g., Authorization).
        """
        return {
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        }

    def _check_api_error(self, data: Any) -> Optional[APIError]:
        """
        Check a decoded 2xx response for provider-level errors.

        Default implementation checks the common ``error`` field pattern.
        """
        if isinstance(data, dict) and data.get("error"):
            error_msg = data["error"]
            if isinstance(error_msg, dict):
                error_msg = error_msg.get("message", str(error_msg))
            return FatalError(message=str(error_msg), source=self.source_id)
        return None

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        if not url.startswith("http"):
            url = f"{self.base_url}/{url.lstrip('/')}"

        client = await self._get_client()
        logger.debug(f"[{self.source_id}] {method} {url}")
        response = await client.request(method, url, params=params, json=json_body)

        if response.status_code >= 400:
            raise classify_http_error(
                response.status_code, response.text[:500], self.source_id
            )
        return response

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._send("GET", url, params=params)
        return self._decode(response)

    async def _post_json(
        self,
        url: str,
        json_body: Dict[str, Any],
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        response = await self._send("POST", url, params=params, json_body=json_body)
        return self._decode(response)

    async def _get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        response = await self._send("GET", url, params=params)
        return response.text

    def _decode(self, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedPayloadError(
                f"Response is not valid JSON: {e}", source=self.source_id
            ) from e

        api_error = self._check_api_error(data)
        if api_error:
            raise api_error
        return data

    @abstractmethod
    async def _fetch_payload(
        self,
        location: Location,
        category: Category,
        params: Dict[str, Any],
    ) -> Any:
        """Issue the provider request(s) and return the raw payload."""

    async def fetch(
        self,
        location: Location,
        category: Category,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> FetchResult:
        """
        Fetch one payload from this provider.

        Args:
            location: Target point
            category: Requested category (a provider may serve several)
            params: Request parameters (radius_km, days, limit, ...)
            timeout: Seconds before the call is abandoned (defaults to client timeout)

        Returns:
            FetchResult; ``success=False`` carries SOURCE_TIMEOUT or SOURCE_ERROR
        """
        timeout = self.timeout if timeout is None else timeout
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()

        def failed(code: FetchErrorCode, message: str) -> FetchResult:
            elapsed = time.perf_counter() - start
            logger.warning(f"[{self.source_id}] {code.value}: {message}")
            return FetchResult.failure(
                self.source_id, code, message,
                elapsed_seconds=elapsed, timestamp=started_at,
            )

        if not self.is_configured():
            error = ConfigurationError(
                "API key not configured",
                source=self.source_id,
                missing_config=self.descriptor.api_key_setting,
            )
            return failed(FetchErrorCode.SOURCE_ERROR, str(error))

        try:
            payload = await asyncio.wait_for(
                self._fetch_payload(location, category, params or {}),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return failed(FetchErrorCode.SOURCE_TIMEOUT, f"No response within {timeout:g}s")
        except APIError as e:
            return failed(FetchErrorCode.SOURCE_ERROR, str(e))
        except httpx.HTTPError as e:
            return failed(FetchErrorCode.SOURCE_ERROR, f"Request failed: {e}")
        except (KeyError, IndexError, TypeError, ValueError) as e:
            return failed(FetchErrorCode.SOURCE_ERROR, f"Malformed payload: {e!r}")

        elapsed = time.perf_counter() - start
        logger.debug(f"[{self.source_id}] fetched in {elapsed:.2f}s")
        return FetchResult(
            source_id=self.source_id,
            success=True,
            payload=payload,
            elapsed_seconds=elapsed,
            timestamp=started_at,
        )
