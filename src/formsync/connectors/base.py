"""Core connector abstractions.

Defines the foundation every remote integration builds on:
- AuthStrategy: Authentication method abstraction
- RequestPolicy: Rate limiting, retries, timeouts
- ConnectorError hierarchy: Typed exceptions, one per HTTP failure class
- BaseConnector: Name, capabilities and health check

Everything here is transport-agnostic; http_client.py does the I/O.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

# =============================================================================
# Connector Capabilities
# =============================================================================


class ConnectorCapability(str, Enum):
    """Capabilities a connector may support."""

    READ_LISTS = "read_lists"
    READ_FIELDS = "read_fields"
    WRITE_SUBSCRIBERS = "write_subscribers"
    OAUTH = "oauth"


# =============================================================================
# Authentication Strategies
# =============================================================================


class AuthType(str, Enum):
    """Type of authentication strategy."""

    NONE = "none"
    OAUTH_TOKEN = "oauth_token"


@dataclass
class AuthStrategy:
    """Base authentication strategy (data holder)."""

    auth_type: AuthType = AuthType.NONE

    def get_headers(self) -> Dict[str, str]:
        """Get authentication headers for requests."""
        return {}


@dataclass
class OAuthTokenAuth(AuthStrategy):
    """Bearer authentication with an OAuth access token.

    Holds a snapshot of the token string; a new strategy is built whenever
    the token changes.
    """

    auth_type: AuthType = field(default=AuthType.OAUTH_TOKEN, init=False)
    access_token: str = ""
    token_type: str = "Bearer"

    def get_headers(self) -> Dict[str, str]:
        """Get authorization header.

        An empty token still produces the header so the remote API answers
        with 401 instead of the request silently going out anonymous.
        """
        return {"Authorization": f"{self.token_type} {self.access_token}"}


# =============================================================================
# Request Policy
# =============================================================================


@dataclass
class RequestPolicy:
    """Policy for HTTP requests: timeouts, retries, rate limits.

    Used by http_client to enforce consistent behavior.
    """

    # Timeouts
    connect_timeout: float = 10.0  # seconds
    read_timeout: float = 30.0  # seconds
    total_timeout: float = 60.0  # seconds

    # Retries
    max_retries: int = 3
    retry_delay: float = 1.0  # base delay in seconds
    retry_backoff: float = 2.0  # exponential backoff multiplier
    retry_on_status: List[int] = field(default_factory=lambda: [429, 500, 502, 503, 504])

    # Rate limiting (per client)
    requests_per_second: Optional[float] = None  # None = no limit

    # Headers
    user_agent: str = "formsync/1.0"
    default_headers: Dict[str, str] = field(default_factory=dict)


DEFAULT_POLICY = RequestPolicy()

# One attempt per call: a send must not turn into a burst of duplicate POSTs
NO_RETRY_POLICY = RequestPolicy(max_retries=0)


# =============================================================================
# Connector Error Hierarchy
# =============================================================================


class ConnectorError(Exception):
    """Base exception for connector errors."""

    def __init__(
        self,
        message: str,
        connector_name: str = "",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.connector_name = connector_name
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message)


class ConnectionError(ConnectorError):
    """Failed to connect to the service."""

    pass


class TimeoutError(ConnectorError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        connector_name: str = "",
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(message, connector_name, {"timeout_seconds": timeout_seconds})
        self.timeout_seconds = timeout_seconds


class AuthenticationError(ConnectorError):
    """Authentication failed (invalid credentials, expired token, etc.)."""

    pass


class AuthorizationError(ConnectorError):
    """Authorized but not permitted (insufficient permissions)."""

    pass


class RateLimitError(ConnectorError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        connector_name: str = "",
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, connector_name, {"retry_after": retry_after}, status_code=429)
        self.retry_after = retry_after


class ValidationError(ConnectorError):
    """Request validation failed (bad data, missing fields, etc.)."""

    def __init__(
        self,
        message: str,
        connector_name: str = "",
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            message, connector_name, {"field_errors": field_errors or {}}, status_code=422
        )
        self.field_errors = field_errors or {}


class ResourceNotFoundError(ConnectorError):
    """Requested resource not found."""

    def __init__(
        self,
        message: str = "Resource not found",
        connector_name: str = "",
        resource_type: str = "",
        resource_id: str = "",
    ):
        super().__init__(
            message,
            connector_name,
            {"resource_type": resource_type, "resource_id": resource_id},
            status_code=404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(ConnectorError):
    """Resource conflict (duplicate, version mismatch, etc.)."""

    pass


class ServiceUnavailableError(ConnectorError):
    """Service is temporarily unavailable."""

    pass


# =============================================================================
# Connector Base Class
# =============================================================================


class BaseConnector(ABC):
    """Abstract base class for connectors.

    Provides common functionality and enforces the interface.
    """

    _name: str = "base"
    _capabilities: Set[ConnectorCapability] = set()

    def __init__(self, policy: Optional[RequestPolicy] = None):
        """Initialize the connector.

        Args:
            policy: Request policy (timeouts, retries, etc.)
        """
        self.policy = policy or DEFAULT_POLICY

    @property
    def name(self) -> str:
        """Connector name."""
        return self._name

    @property
    def capabilities(self) -> Set[ConnectorCapability]:
        """Set of capabilities this connector supports."""
        return self._capabilities

    def has_capability(self, capability: ConnectorCapability) -> bool:
        """Check if connector has a specific capability."""
        return capability in self._capabilities

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the connector is healthy."""
        pass
