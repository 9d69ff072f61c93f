"""HTTP client wrapper with retry/rate-limit support.

Wraps httpx with RequestPolicy enforcement:
- Configurable timeouts
- Automatic retries with exponential backoff
- Per-client rate limiting
- Error mapping to ConnectorError hierarchy

Tests pass an ``httpx.MockTransport`` through ``transport``.
"""

import json as json_module
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .base import (
    AuthenticationError,
    AuthorizationError,
    AuthStrategy,
    ConflictError,
    ConnectionError,
    ConnectorError,
    RateLimitError,
    RequestPolicy,
    ResourceNotFoundError,
    ServiceUnavailableError,
    TimeoutError,
    ValidationError,
)


@dataclass
class HTTPResponse:
    """Simplified HTTP response wrapper.

    Used to provide consistent interface regardless of underlying HTTP library.
    """

    status_code: int
    headers: Dict[str, str]
    body: bytes
    json_data: Optional[Any] = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        """Check if status code indicates success (2xx)."""
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Get JSON data (parsed body)."""
        if self.json_data is not None:
            return self.json_data
        self.json_data = json_module.loads(self.body)
        return self.json_data


class HTTPClient:
    """HTTP client with retry and rate-limit support.

    Wraps httpx with RequestPolicy enforcement.
    """

    def __init__(
        self,
        auth: Optional[AuthStrategy] = None,
        policy: Optional[RequestPolicy] = None,
        base_url: str = "",
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        connector_name: str = "http_client",
    ):
        """Initialize HTTP client.

        Args:
            auth: Authentication strategy for requests
            policy: Request policy (timeouts, retries)
            base_url: Base URL for all requests
            headers: Headers sent with every request
            transport: Optional httpx transport (mocking, proxies)
            connector_name: Name attached to raised errors
        """
        self.auth = auth
        self.policy = policy or RequestPolicy()
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self.transport = transport
        self.connector_name = connector_name

        self._last_request_time: float = 0.0

    def _build_headers(self, extra_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Build request headers including auth and defaults."""
        headers = {"User-Agent": self.policy.user_agent}
        headers.update(self.policy.default_headers)
        headers.update(self.headers)

        if self.auth:
            headers.update(self.auth.get_headers())

        if extra_headers:
            headers.update(extra_headers)

        return headers

    def _get_url(self, path: str) -> str:
        """Build full URL from path."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """Check if request should be retried."""
        if attempt >= self.policy.max_retries:
            return False
        return status_code in self.policy.retry_on_status

    @staticmethod
    def _retry_after(response: HTTPResponse) -> Optional[float]:
        """Seconds from a Retry-After header, or None."""
        retry_after = response.headers.get("retry-after")
        try:
            return float(retry_after) if retry_after else None
        except ValueError:
            return None

    def _get_retry_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Calculate retry delay with exponential backoff."""
        if retry_after is not None:
            return retry_after
        return self.policy.retry_delay * (self.policy.retry_backoff ** attempt)

    def map_error(self, response: HTTPResponse) -> ConnectorError:
        """Map an HTTP error response to the appropriate ConnectorError."""
        status_code = response.status_code
        body_str = response.body.decode("utf-8", errors="replace")
        name = self.connector_name

        if status_code == 401:
            return AuthenticationError(
                f"Authentication failed: {body_str}",
                connector_name=name,
                status_code=401,
            )
        elif status_code == 403:
            return AuthorizationError(
                f"Permission denied: {body_str}",
                connector_name=name,
                status_code=403,
            )
        elif status_code == 404:
            return ResourceNotFoundError(
                f"Resource not found: {body_str}",
                connector_name=name,
            )
        elif status_code == 409:
            return ConflictError(
                f"Resource conflict: {body_str}",
                connector_name=name,
                status_code=409,
            )
        elif status_code == 422:
            return ValidationError(
                f"Validation failed: {body_str}",
                connector_name=name,
            )
        elif status_code == 429:
            return RateLimitError(
                f"Rate limit exceeded: {body_str}",
                connector_name=name,
                retry_after=self._retry_after(response),
            )
        elif status_code >= 500:
            return ServiceUnavailableError(
                f"Service error ({status_code}): {body_str}",
                connector_name=name,
                status_code=status_code,
            )
        else:
            return ConnectorError(
                f"HTTP error {status_code}: {body_str}",
                connector_name=name,
                status_code=status_code,
            )

    def _enforce_rate_limit(self) -> None:
        """Enforce rate limiting if configured (in-memory, per-instance)."""
        if self.policy.requests_per_second is None:
            return

        now = time.monotonic()
        min_interval = 1.0 / self.policy.requests_per_second

        time_since_last = now - self._last_request_time
        if time_since_last < min_interval:
            time.sleep(min_interval - time_since_last)

        self._last_request_time = time.monotonic()

    def _sleep_and_retry(self, attempt: int, retry_after: Optional[float] = None) -> bool:
        """Sleep before retry if attempts remain. Returns True if should retry."""
        if attempt < self.policy.max_retries:
            delay = self._get_retry_delay(attempt, retry_after)
            time.sleep(delay)
            return True
        return False

    def _execute_request(
        self,
        method: str,
        url: str,
        request_headers: Dict[str, str],
        timeout: httpx.Timeout,
        json: Optional[Any],
        data: Optional[Dict[str, Any]],
        params: Optional[Dict[str, Any]],
    ) -> HTTPResponse:
        """Execute a single HTTP request."""
        start_time = time.monotonic()
        with httpx.Client(timeout=timeout, transport=self.transport) as client:
            response = client.request(
                method=method,
                url=url,
                json=json,
                data=data,
                params=params,
                headers=request_headers,
            )
        elapsed = time.monotonic() - start_time
        return HTTPResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            elapsed_seconds=elapsed,
        )

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        raise_for_status: bool = True,
    ) -> HTTPResponse:
        """Make HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: URL path (relative to base_url)
            json: JSON body to send
            data: Form data to send
            params: Query parameters
            headers: Additional headers
            raise_for_status: Raise exception on non-2xx status

        Returns:
            HTTPResponse with status, headers, and body

        Raises:
            ConnectorError: On HTTP errors (if raise_for_status=True)
            TimeoutError: On request timeout
            ConnectionError: On connection failure
        """
        url = self._get_url(path)
        request_headers = self._build_headers(headers)
        timeout = httpx.Timeout(
            connect=self.policy.connect_timeout,
            read=self.policy.read_timeout,
            write=self.policy.read_timeout,
            pool=self.policy.total_timeout,
        )

        last_error: Optional[Exception] = None

        for attempt in range(self.policy.max_retries + 1):
            self._enforce_rate_limit()

            try:
                result = self._execute_request(
                    method, url, request_headers, timeout, json, data, params
                )

                if not result.ok and self._should_retry(result.status_code, attempt):
                    retry_after = self._retry_after(result) if result.status_code == 429 else None
                    self._sleep_and_retry(attempt, retry_after)
                    continue

                if raise_for_status and not result.ok:
                    raise self.map_error(result)

                return result

            except httpx.TimeoutException:
                last_error = TimeoutError(
                    f"Request timed out after {self.policy.read_timeout}s",
                    connector_name=self.connector_name,
                    timeout_seconds=self.policy.read_timeout,
                )
                if self._sleep_and_retry(attempt):
                    continue

            except httpx.ConnectError as e:
                last_error = ConnectionError(
                    f"Failed to connect to {url}: {e}", connector_name=self.connector_name
                )
                if self._sleep_and_retry(attempt):
                    continue

            except httpx.HTTPError as e:
                last_error = ConnectorError(f"HTTP error: {e}", connector_name=self.connector_name)
                if self._sleep_and_retry(attempt):
                    continue

        # All retries exhausted
        if last_error:
            raise last_error
        raise ConnectorError("Request failed after all retries", connector_name=self.connector_name)

    def get(self, path: str, **kwargs) -> HTTPResponse:
        """HTTP GET request."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> HTTPResponse:
        """HTTP POST request."""
        return self.request("POST", path, **kwargs)
