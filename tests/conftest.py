"""Test configuration and fixtures.

All HTTP goes through ``httpx.MockTransport``; no test touches the network.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from formsync.connectors.base import ConnectorError
from formsync.integrations import DripIntegration, LoggingErrorReporter
from formsync.tokens import OAuthToken

Route = Tuple[str, str]


class FakeDripAPI:
    """Scripted Drip API: (method, path) -> queue of responses.

    The last response for a route repeats once its queue is drained.
    Every request is recorded in ``calls``.
    """

    def __init__(self):
        self.routes: Dict[Route, List[Tuple[int, bytes]]] = {}
        self.calls: List[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> "FakeDripAPI":
        content = b"" if body is None else json.dumps(body).encode()
        self.routes.setdefault((method, path), []).append((status, content))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/v2/")
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, content=b'{"errors": [{"code": "not_found"}]}')
        status, content = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, content=content, headers={"Content-Type": "application/json"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [
            c for c in self.calls if c.method == method and c.url.path == f"/v2/{path}"
        ]


class FakeTokenProvider:
    """Token provider that swaps in ``new_access_token`` on refresh."""

    def __init__(
        self,
        access_token: str = "stale-token",
        new_access_token: str = "fresh-token",
        fail_refresh: bool = False,
    ):
        self.token = OAuthToken(access_token=access_token, refresh_token="refresh-1")
        self.new_access_token = new_access_token
        self.fail_refresh = fail_refresh
        self.refresh_calls: List[Tuple[OAuthToken, bool]] = []

    def get_token(self) -> OAuthToken:
        return self.token

    def refresh_token(self, token: OAuthToken, force: bool = False) -> None:
        self.refresh_calls.append((token, force))
        if self.fail_refresh:
            raise ConnectorError("refresh rejected", connector_name="oauth")
        token.access_token = self.new_access_token


@pytest.fixture
def make_api() -> Callable[[], FakeDripAPI]:
    """Factory for an empty scripted Drip API."""
    return FakeDripAPI


@pytest.fixture
def make_token_provider() -> Callable[..., FakeTokenProvider]:
    """Factory for token providers with chosen old/new access tokens."""
    return FakeTokenProvider


@pytest.fixture
def drip_api() -> FakeDripAPI:
    """Drip API with one account and no custom fields."""
    return (
        FakeDripAPI()
        .add("GET", "accounts", body={"accounts": [{"id": "A1", "name": "Acme"}]})
        .add("GET", "A1/custom_field_identifiers", body={"custom_field_identifiers": []})
    )


@pytest.fixture
def token_provider() -> FakeTokenProvider:
    return FakeTokenProvider(access_token="good-token")


@pytest.fixture
def reporter() -> LoggingErrorReporter:
    return LoggingErrorReporter()


@pytest.fixture
def make_drip(
    drip_api: FakeDripAPI, token_provider: FakeTokenProvider, reporter: LoggingErrorReporter
) -> Callable[..., DripIntegration]:
    """Factory for a DripIntegration wired to the fake API."""

    def _make(field_mapping: Optional[Dict[str, str]] = None, **kwargs: Any) -> DripIntegration:
        kwargs.setdefault("token_provider", token_provider)
        return DripIntegration(
            client_id="client-id",
            client_secret="client-secret",
            field_mapping=field_mapping,
            error_reporter=reporter,
            transport=drip_api.transport,
            **kwargs,
        )

    return _make
