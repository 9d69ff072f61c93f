"""Drip integration.

Signs form submitters up to Drip through the v2 REST API. Drip exposes no
lists to subscribe to, so the integration offers one synthetic
"All Subscribers" list carrying the standard subscriber attributes plus the
account's custom field identifiers.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, Field

from formsync.connectors.authenticated import AuthenticatedClient
from formsync.connectors.base import (
    NO_RETRY_POLICY,
    ConnectorCapability,
    ConnectorError,
    RequestPolicy,
)
from formsync.integrations.base import (
    EmailMarketingIntegration,
    ErrorReporter,
    describe_exception,
)
from formsync.integrations.models import (
    EmailMarketingList,
    FormSettings,
    IntegrationField,
    Submission,
)
from formsync.integrations.payload import build_subscriber_payload
from formsync.tokens import TokenProvider

logger = logging.getLogger(__name__)

BASE_URL = "https://api.getdrip.com/v2/"
AUTHORIZE_URL = "https://www.getdrip.com/oauth/authorize"
ACCESS_TOKEN_URL = "https://www.getdrip.com/oauth/token"

ALL_SUBSCRIBERS_LIST_ID = "all"

# (handle, label, required) in the order the mapping UI shows them
STANDARD_FIELDS = [
    ("email", "Email", True),
    ("first_name", "First Name", False),
    ("last_name", "Last Name", False),
    ("address1", "Address 1", False),
    ("address2", "Address 2", False),
    ("city", "City", False),
    ("state", "State", False),
    ("zip", "Zip", False),
    ("country", "Country", False),
    ("phone", "Phone", False),
]


class DripSettings(BaseModel):
    """OAuth application credentials for Drip."""

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1)


def _first(response: Any, key: str) -> Dict[str, Any]:
    """First object under ``key`` in a Drip collection response, or {}."""
    items = response.get(key) if isinstance(response, dict) else None
    if not items or not isinstance(items[0], dict):
        return {}
    return items[0]


class DripIntegration(EmailMarketingIntegration):
    """Drip email-marketing integration."""

    _name = "drip"
    _capabilities = {
        ConnectorCapability.READ_LISTS,
        ConnectorCapability.READ_FIELDS,
        ConnectorCapability.WRITE_SUBSCRIBERS,
        ConnectorCapability.OAUTH,
    }
    settings_model = DripSettings

    authorize_url = AUTHORIZE_URL
    access_token_url = ACCESS_TOKEN_URL

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_provider: TokenProvider,
        handle: str = "",
        field_mapping: Optional[Dict[str, str]] = None,
        error_reporter: Optional[ErrorReporter] = None,
        policy: Optional[RequestPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the integration.

        Args:
            client_id: Drip OAuth application client ID
            client_secret: Drip OAuth application client secret
            token_provider: Supplies and refreshes the access token
            handle: Host-side identifier for this instance
            field_mapping: Drip field handle -> submission template
            error_reporter: Destination for API errors
            policy: Request policy (defaults to a single attempt per call)
            transport: Optional httpx transport (mocking)

        Raises:
            IntegrationConfigError: If the credentials are missing
        """
        super().__init__(
            handle=handle,
            list_id=ALL_SUBSCRIBERS_LIST_ID,
            field_mapping=field_mapping,
            error_reporter=error_reporter,
            policy=policy or NO_RETRY_POLICY,
        )
        self.settings = self.validate_settings(client_id=client_id, client_secret=client_secret)
        self.token_provider = token_provider
        self.client = AuthenticatedClient(
            token_provider,
            base_url=BASE_URL,
            probe_path="accounts",
            policy=self.policy,
            transport=transport,
            connector_name=self.name,
        )

    # -- OAuth ---------------------------------------------------------------

    @classmethod
    def supports_oauth_connection(cls) -> bool:
        return True

    @classmethod
    def display_name(cls) -> str:
        return "Drip"

    @property
    def description(self) -> str:
        return "Sign up users to your Drip lists to grow your audience for campaigns."

    def get_client_id(self) -> str:
        return self.settings.client_id

    def get_client_secret(self) -> str:
        return self.settings.client_secret

    def get_authorize_url(
        self, redirect_uri: str, state: str = "", scope: Optional[str] = None
    ) -> str:
        """Build the URL users are sent to for the authorization-code grant."""
        params = {
            "response_type": "code",
            "client_id": self.get_client_id(),
            "redirect_uri": redirect_uri,
        }
        if state:
            params["state"] = state
        if scope:
            params["scope"] = scope
        return f"{self.authorize_url}?{urlencode(params)}"

    # -- remote calls --------------------------------------------------------

    def _request(self, method: str, path: str, **options: Any) -> Any:
        return self.client.request(method, path, **options)

    def _get_account_id(self) -> str:
        """ID of the first account the token can see ("" when there is none)."""
        response = self._request("GET", "accounts")
        account_id = _first(response, "accounts").get("id")
        if not account_id:
            # Left empty on purpose; the next call fails remotely and is reported
            logger.warning("Drip returned no accounts for this token")
            return ""
        return str(account_id)

    def health_check(self) -> bool:
        """Check that the API answers with the current token."""
        try:
            self._request("GET", "accounts")
        except (ConnectorError, ValueError) as e:
            logger.debug("Drip health check failed: %s", e)
            return False
        return True

    # -- operations ----------------------------------------------------------

    def fetch_form_settings(self) -> FormSettings:
        """Discover the "All Subscribers" list and its fields.

        Returns empty settings if anything goes wrong; the error is reported.
        """
        try:
            account_id = self._get_account_id()

            response = self._request("GET", f"{account_id}/custom_field_identifiers")
            identifiers: List[str] = (response or {}).get("custom_field_identifiers") or []

            list_fields = [
                IntegrationField(handle=handle, name=label, required=required)
                for handle, label, required in STANDARD_FIELDS
            ]
            for identifier in identifiers:
                list_fields.append(IntegrationField(handle=identifier, name=identifier))

            return FormSettings(
                lists=[
                    EmailMarketingList(
                        id=ALL_SUBSCRIBERS_LIST_ID,
                        name="All Subscribers",
                        fields=list_fields,
                    )
                ]
            )
        except Exception as e:
            self.error(describe_exception(e), fatal=True)

        return FormSettings()

    def send_payload(self, submission: Submission) -> bool:
        """Create or update the submitter as a Drip subscriber."""
        try:
            field_values = self.get_field_mapping_values(submission)
            payload = build_subscriber_payload(field_values)

            # Allow listeners to cancel sending
            if not self.before_send_payload(submission, payload):
                return False

            account_id = self._get_account_id()

            response = self._request("POST", f"{account_id}/subscribers", json=payload)

            # Allow listeners to say the response is invalid
            if not self.after_send_payload(submission, payload, response):
                return False

            subscriber_id = _first(response, "subscribers").get("id")
            if not subscriber_id:
                self.error(f"API error: “{json.dumps(response)}”", fatal=True)
                return False

            logger.info(
                "Sent submission %s to Drip as subscriber %s", submission.id, subscriber_id
            )
        except Exception as e:
            self.error(describe_exception(e), fatal=True)
            return False

        return True
