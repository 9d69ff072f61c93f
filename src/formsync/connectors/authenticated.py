"""Self-healing authenticated client.

``AuthenticatedClient`` builds its HTTP client lazily, probes it once, and
on a 401 forces a single token refresh and rebuilds the client before any
caller request goes out. Callers never need a retry loop.

States:
    UNBUILT   -> no client yet; next call builds and probes one
    VALID     -> client cached; requests go straight through
    REPAIRING -> probe saw a 401; refreshing the token and rebuilding
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from .base import ConnectorError, OAuthTokenAuth, RequestPolicy
from .http_client import HTTPClient, HTTPResponse

if TYPE_CHECKING:
    from formsync.tokens import OAuthToken, TokenProvider

logger = logging.getLogger(__name__)


class ClientState(str, Enum):
    """Lifecycle of the cached client."""

    UNBUILT = "unbuilt"
    VALID = "valid"
    REPAIRING = "repairing"


def is_auth_error(response: HTTPResponse) -> bool:
    """True when the response means the bearer token was rejected."""
    return response.status_code == 401


class AuthenticatedClient:
    """Lazily-built HTTP client that repairs its bearer token once."""

    def __init__(
        self,
        token_provider: "TokenProvider",
        base_url: str,
        probe_path: str,
        policy: Optional[RequestPolicy] = None,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        connector_name: str = "",
    ):
        """Initialize without touching the network.

        Args:
            token_provider: Source of the current token and forced refreshes
            base_url: API base URL every path is relative to
            probe_path: Cheap authenticated GET used to validate the token
            policy: Request policy for the underlying HTTPClient
            headers: Extra headers for every request
            transport: Optional httpx transport (mocking)
            connector_name: Name attached to raised errors
        """
        self.token_provider = token_provider
        self.base_url = base_url
        self.probe_path = probe_path
        self.policy = policy
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.transport = transport
        self.connector_name = connector_name

        self.state = ClientState.UNBUILT
        self._client: Optional[HTTPClient] = None

    def _build_client(self, token: "OAuthToken") -> HTTPClient:
        return HTTPClient(
            auth=OAuthTokenAuth(access_token=token.access_token or "", token_type=token.token_type),
            policy=self.policy,
            base_url=self.base_url,
            headers=self.headers,
            transport=self.transport,
            connector_name=self.connector_name,
        )

    def _probe(self, client: HTTPClient) -> bool:
        """Return True if the probe was rejected with an authorization error.

        Any other failure is left for the real call to report.
        """
        try:
            response = client.get(self.probe_path, raise_for_status=False)
        except ConnectorError as e:
            logger.debug("Probe %s failed, deferring to real call: %s", self.probe_path, e)
            return False
        return is_auth_error(response)

    def _repair(self, token: "OAuthToken") -> None:
        self.state = ClientState.REPAIRING
        logger.info("Access token rejected by %s, forcing refresh", self.base_url)
        try:
            self.token_provider.refresh_token(token, force=True)
        except ConnectorError as e:
            # Keep going with the stale token; the real call reports the failure
            logger.warning("Forced token refresh failed: %s", e)
        finally:
            self._client = self._build_client(self.token_provider.get_token())
            self.state = ClientState.VALID

    def ensure_client(self) -> HTTPClient:
        """Return the cached client, building and validating it on first use."""
        if self._client is not None:
            return self._client

        token = self.token_provider.get_token()
        self._client = self._build_client(token)

        if self._probe(self._client):
            self._repair(token)

        self.state = ClientState.VALID
        return self._client

    def request(self, method: str, path: str, **options: Any) -> Any:
        """Issue one request and decode the JSON body.

        Args:
            method: HTTP method
            path: Path relative to the base URL; surrounding slashes are ignored
            **options: Passed to HTTPClient.request (json, data, params, headers)

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            ConnectorError: On transport failure or non-2xx status
            ValueError: If the body is not valid JSON
        """
        client = self.ensure_client()
        response = client.request(method, path.strip("/"), **options)
        if not response.body:
            return None
        return response.json()
