"""Connector layer for remote marketing APIs.

Key components:
- AuthStrategy: Authentication abstraction (OAuthTokenAuth)
- RequestPolicy: Rate limiting, retries, timeouts
- HTTPClient: httpx wrapper with policy enforcement
- AuthenticatedClient: Lazily-built client that heals a rejected bearer token
- ConnectorError hierarchy
"""

from .authenticated import AuthenticatedClient, ClientState, is_auth_error
from .base import (
    DEFAULT_POLICY,
    NO_RETRY_POLICY,
    AuthenticationError,
    AuthorizationError,
    # Authentication
    AuthStrategy,
    AuthType,
    BaseConnector,
    ConflictError,
    ConnectionError,
    # Capabilities
    ConnectorCapability,
    # Error hierarchy
    ConnectorError,
    OAuthTokenAuth,
    RateLimitError,
    # Request policy
    RequestPolicy,
    ResourceNotFoundError,
    ServiceUnavailableError,
    TimeoutError,
    ValidationError,
)
from .http_client import HTTPClient, HTTPResponse

__all__ = [
    # Base
    "BaseConnector",
    "ConnectorCapability",
    # Auth
    "AuthType",
    "AuthStrategy",
    "OAuthTokenAuth",
    # Policy
    "RequestPolicy",
    "DEFAULT_POLICY",
    "NO_RETRY_POLICY",
    # Errors
    "ConnectorError",
    "ConnectionError",
    "TimeoutError",
    "AuthenticationError",
    "AuthorizationError",
    "RateLimitError",
    "ValidationError",
    "ResourceNotFoundError",
    "ConflictError",
    "ServiceUnavailableError",
    # HTTP
    "HTTPClient",
    "HTTPResponse",
    "AuthenticatedClient",
    "ClientState",
    "is_auth_error",
]
