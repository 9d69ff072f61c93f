"""Tests for OAuth tokens and OAuthTokenProvider."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from formsync.connectors import HTTPClient, RequestPolicy
from formsync.tokens import OAuthToken, OAuthTokenProvider, TokenProvider, TokenRefreshError

TOKEN_URL = "https://www.getdrip.com/oauth/token"


def make_provider(handler, token=None) -> OAuthTokenProvider:
    http_client = HTTPClient(
        policy=RequestPolicy(max_retries=0),
        transport=httpx.MockTransport(handler),
    )
    return OAuthTokenProvider(
        token_url=TOKEN_URL,
        client_id="cid",
        client_secret="secret",
        token=token or OAuthToken(access_token="old", refresh_token="r1"),
        http_client=http_client,
    )


class TestOAuthToken:
    """Tests for OAuthToken."""

    def test_no_expiry_never_expired(self):
        assert OAuthToken(access_token="t").is_expired() is False

    def test_future_expiry(self):
        future = datetime.now(timezone.utc) + timedelta(hours=1)
        assert OAuthToken(access_token="t", expires_at=future).is_expired() is False

    def test_past_expiry(self):
        past = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert OAuthToken(access_token="t", expires_at=past).is_expired() is True


class TestOAuthTokenProvider:
    """Tests for the refresh_token grant."""

    def test_implements_protocol(self):
        provider = make_provider(lambda request: httpx.Response(500))
        assert isinstance(provider, TokenProvider)

    def test_get_token(self):
        token = OAuthToken(access_token="abc")
        provider = make_provider(lambda request: httpx.Response(500), token=token)
        assert provider.get_token() is token

    def test_unforced_refresh_skips_valid_token(self):
        """A token that has not expired is left alone unless forced."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"access_token": "new"})

        provider = make_provider(handler)
        provider.refresh_token(provider.get_token())

        assert calls == []
        assert provider.get_token().access_token == "old"

    def test_forced_refresh_posts_grant(self):
        """force=True always contacts the token endpoint."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(
                200,
                json={"access_token": "new", "refresh_token": "r2", "expires_in": 7200},
            )

        provider = make_provider(handler)
        token = provider.get_token()
        provider.refresh_token(token, force=True)

        assert str(requests[0].url) == TOKEN_URL
        form = parse_qs(requests[0].content.decode())
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["r1"]
        assert form["client_id"] == ["cid"]
        assert form["client_secret"] == ["secret"]

        # Updated in place
        assert token.access_token == "new"
        assert token.refresh_token == "r2"
        assert token.expires_at is not None
        assert token.is_expired() is False

    def test_keeps_refresh_token_when_not_rotated(self):
        provider = make_provider(lambda request: httpx.Response(200, json={"access_token": "new"}))
        provider.refresh_token(provider.get_token(), force=True)
        assert provider.get_token().refresh_token == "r1"

    def test_expired_token_refreshes_without_force(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = OAuthToken(access_token="old", refresh_token="r1", expires_at=past)
        provider = make_provider(
            lambda request: httpx.Response(200, json={"access_token": "new"}), token=token
        )

        provider.refresh_token(token)

        assert token.access_token == "new"

    def test_missing_refresh_token(self):
        token = OAuthToken(access_token="old")
        provider = make_provider(lambda request: httpx.Response(200), token=token)

        with pytest.raises(TokenRefreshError):
            provider.refresh_token(token, force=True)

    def test_rejected_refresh(self):
        provider = make_provider(
            lambda request: httpx.Response(400, json={"error": "invalid_grant"})
        )

        with pytest.raises(TokenRefreshError) as exc:
            provider.refresh_token(provider.get_token(), force=True)

        assert exc.value.status_code == 400
        assert provider.get_token().access_token == "old"

    def test_response_without_access_token(self):
        provider = make_provider(lambda request: httpx.Response(200, json={}))

        with pytest.raises(TokenRefreshError):
            provider.refresh_token(provider.get_token(), force=True)

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, text=""),
            httpx.Response(200, json=["not", "an", "object"]),
            httpx.Response(200, json={"access_token": "new", "expires_in": "soon"}),
        ],
    )
    def test_malformed_response(self, response):
        """Undecodable token responses raise TokenRefreshError, token untouched."""
        provider = make_provider(lambda request: response)

        with pytest.raises(TokenRefreshError) as exc:
            provider.refresh_token(provider.get_token(), force=True)

        assert exc.value.status_code == 200
        assert provider.get_token().access_token == "old"
