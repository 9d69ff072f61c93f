"""OAuth tokens and the providers that keep them current.

The authorization-code exchange happens upstream; by the time an integration
runs, a token (ideally with a refresh token) already exists. Providers hand
that token out and renew it with the ``refresh_token`` grant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, runtime_checkable

from formsync.connectors.base import ConnectorError, RequestPolicy
from formsync.connectors.http_client import HTTPClient

logger = logging.getLogger(__name__)


class TokenRefreshError(ConnectorError):
    """The authorization server did not issue a new access token."""

    pass


@dataclass
class OAuthToken:
    """An OAuth2 access token plus what is needed to renew it."""

    access_token: str = ""
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_at: Optional[datetime] = None

    def is_expired(self) -> bool:
        """Check if token is expired. Tokens without an expiry never are."""
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies the current token for one integration instance."""

    def get_token(self) -> OAuthToken:
        """Return the current token. It may already be stale."""
        ...

    def refresh_token(self, token: OAuthToken, force: bool = False) -> None:
        """Renew ``token``; ``force`` skips the local expiry check.

        Raises:
            ConnectorError: If the token could not be renewed
        """
        ...


class OAuthTokenProvider:
    """Token provider backed by an OAuth2 token endpoint.

    Holds the token in memory and renews it in place, so every holder of the
    ``OAuthToken`` object sees the new access token.
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        token: Optional[OAuthToken] = None,
        http_client: Optional[HTTPClient] = None,
    ):
        """Initialize the provider.

        Args:
            token_url: Authorization server token endpoint
            client_id: OAuth application client ID
            client_secret: OAuth application client secret
            token: Previously issued token (empty token if omitted)
            http_client: Client used for the token endpoint
        """
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self._token = token or OAuthToken()
        self.http_client = http_client or HTTPClient(
            policy=RequestPolicy(max_retries=0),
            headers={"Accept": "application/json"},
            connector_name="oauth",
        )

    def get_token(self) -> OAuthToken:
        """Return the stored token."""
        return self._token

    def refresh_token(self, token: OAuthToken, force: bool = False) -> None:
        """Run the refresh_token grant and update ``token`` in place."""
        if not force and not token.is_expired():
            return

        if not token.refresh_token:
            raise TokenRefreshError("No refresh token available", connector_name="oauth")

        response = self.http_client.post(
            self.token_url,
            data={
                "grant_type": "refresh_token",
                "refresh_token": token.refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            raise_for_status=False,
        )
        if not response.ok:
            raise TokenRefreshError(
                f"Token refresh failed ({response.status_code})",
                connector_name="oauth",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            access_token = data.get("access_token")
            refresh_token = data.get("refresh_token")
            expires_in = int(data["expires_in"]) if data.get("expires_in") else None
        except (ValueError, TypeError, AttributeError) as e:
            raise TokenRefreshError(
                f"Malformed token response: {e}",
                connector_name="oauth",
                status_code=response.status_code,
            ) from e

        if not access_token:
            raise TokenRefreshError("Token response has no access_token", connector_name="oauth")

        token.access_token = access_token
        # Some providers rotate refresh tokens
        if refresh_token:
            token.refresh_token = refresh_token
        if expires_in is not None:
            token.expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        self._token = token
        logger.info("Refreshed access token via %s (forced=%s)", self.token_url, force)
