"""Tests for radctl/core/token/token_manager.py — client-credentials lifecycle."""

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from radctl.core.exceptions import AuthError, TransportError
from radctl.core.token.token_manager import TokenManager
from radctl.core.token.token_models import AccessToken, OAuthConfig, TokenResponse


TOKEN_URL = "https://auth.example.com/oauth2/token"


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TokenEndpoint:
    """Counts grants and hands out token-1, token-2, ..."""

    def __init__(self, expires_in=3600, status_code=200, text=None, delay=0.0):
        self.expires_in = expires_in
        self.status_code = status_code
        self.text = text
        self.delay = delay
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        body = {"access_token": f"token-{len(self.requests)}", "token_type": "Bearer", "scope": "profiles.read profiles.write"}
        if self.expires_in is not None:
            body["expires_in"] = self.expires_in
        return httpx.Response(self.status_code, text=json.dumps(body))

    def form(self, index: int = 0) -> dict:
        return parse_qs(self.requests[index].content.decode())


@pytest.fixture
def oauth_config() -> OAuthConfig:
    return OAuthConfig(
        client_id="radctl",
        client_secret="s3cret",
        token_endpoint=TOKEN_URL,
        scopes=["profiles.read", "profiles.write"],
    )


def make_manager(oauth_config, endpoint, clock=None, **kwargs) -> TokenManager:
    return TokenManager(
        oauth_config,
        clock=clock or FakeClock(),
        transport=httpx.MockTransport(endpoint),
        **kwargs,
    )


class TestGetToken:

    async def test_without_oauth_config_returns_none(self):
        manager = TokenManager(None)
        assert manager.enabled is False
        assert await manager.get_token() is None

    async def test_grant_request_uses_client_credentials(self, oauth_config):
        endpoint = TokenEndpoint()
        manager = make_manager(oauth_config, endpoint)

        token = await manager.get_token()

        assert token.token == "token-1"
        request = endpoint.requests[0]
        assert request.method == "POST"
        assert str(request.url) == TOKEN_URL
        form = endpoint.form()
        assert form["grant_type"] == ["client_credentials"]
        assert form["client_id"] == ["radctl"]
        assert form["client_secret"] == ["s3cret"]
        assert form["scope"] == ["profiles.read profiles.write"]

    async def test_token_is_cached_until_expiry(self, oauth_config):
        endpoint = TokenEndpoint(expires_in=3600)
        clock = FakeClock()
        manager = make_manager(oauth_config, endpoint, clock=clock)

        first = await manager.get_token()
        clock.now += 1800
        second = await manager.get_token()

        assert first is second
        assert len(endpoint.requests) == 1

    async def test_expired_token_is_never_reused(self, oauth_config):
        endpoint = TokenEndpoint(expires_in=60)
        clock = FakeClock()
        manager = make_manager(oauth_config, endpoint, clock=clock, refresh_margin=0)

        first = await manager.get_token()
        clock.now += 60
        second = await manager.get_token()

        assert first.token == "token-1"
        assert second.token == "token-2"
        assert second.expires_at > clock.now

    async def test_refreshes_before_expiry_within_margin(self, oauth_config):
        endpoint = TokenEndpoint(expires_in=60)
        clock = FakeClock()
        manager = make_manager(oauth_config, endpoint, clock=clock, refresh_margin=10)

        await manager.get_token()
        clock.now += 55
        token = await manager.get_token()

        assert token.token == "token-2"

    async def test_token_without_lifetime_is_kept(self, oauth_config):
        endpoint = TokenEndpoint(expires_in=None)
        clock = FakeClock()
        manager = make_manager(oauth_config, endpoint, clock=clock)

        await manager.get_token()
        clock.now += 10 * 365 * 86400
        await manager.get_token()

        assert len(endpoint.requests) == 1

    async def test_granted_scopes_recorded(self, oauth_config):
        manager = make_manager(oauth_config, TokenEndpoint())
        token = await manager.get_token()
        assert token.scopes == ["profiles.read", "profiles.write"]

    async def test_concurrent_callers_trigger_one_grant(self, oauth_config):
        endpoint = TokenEndpoint(delay=0.05)
        manager = make_manager(oauth_config, endpoint)

        tokens = await asyncio.gather(*(manager.get_token() for _ in range(10)))

        assert len(endpoint.requests) == 1
        assert {t.token for t in tokens} == {"token-1"}

    async def test_concurrent_callers_after_expiry_trigger_one_grant(self, oauth_config):
        endpoint = TokenEndpoint(expires_in=60, delay=0.02)
        clock = FakeClock()
        manager = make_manager(oauth_config, endpoint, clock=clock, refresh_margin=0)

        await manager.get_token()
        clock.now += 120
        tokens = await asyncio.gather(*(manager.get_token() for _ in range(5)))

        assert len(endpoint.requests) == 2
        assert {t.token for t in tokens} == {"token-2"}

    async def test_short_lived_token_is_cached(self, oauth_config):
        endpoint = TokenEndpoint(expires_in=5, delay=0.02)
        clock = FakeClock()
        manager = make_manager(oauth_config, endpoint, clock=clock, refresh_margin=10)

        tokens = await asyncio.gather(*(manager.get_token() for _ in range(5)))
        clock.now += 2
        again = await manager.get_token()

        assert len(endpoint.requests) == 1
        assert {t.token for t in tokens} == {"token-1"}
        assert again.token == "token-1"

    async def test_short_lived_token_refreshed_in_second_half(self, oauth_config):
        endpoint = TokenEndpoint(expires_in=5)
        clock = FakeClock()
        manager = make_manager(oauth_config, endpoint, clock=clock, refresh_margin=10)

        await manager.get_token()
        clock.now += 3
        token = await manager.get_token()

        assert token.token == "token-2"

    async def test_invalidate_forces_new_grant(self, oauth_config):
        endpoint = TokenEndpoint()
        manager = make_manager(oauth_config, endpoint)

        await manager.get_token()
        manager.invalidate()
        token = await manager.get_token()

        assert token.token == "token-2"


class TestGrantFailures:

    async def test_error_status_raises_auth_error(self, oauth_config):
        endpoint = TokenEndpoint(status_code=401, text='{"error": "invalid_client"}')
        manager = make_manager(oauth_config, endpoint)

        with pytest.raises(AuthError, match="401"):
            await manager.get_token()

    async def test_unparsable_body_raises_auth_error(self, oauth_config):
        endpoint = TokenEndpoint(text="<html>oops</html>")
        manager = make_manager(oauth_config, endpoint)

        with pytest.raises(AuthError, match="Unparsable"):
            await manager.get_token()

    async def test_missing_access_token_raises_auth_error(self, oauth_config):
        endpoint = TokenEndpoint(text='{"token_type": "Bearer"}')
        manager = make_manager(oauth_config, endpoint)

        with pytest.raises(AuthError):
            await manager.get_token()

    async def test_failed_grant_is_not_cached(self, oauth_config):
        endpoint = TokenEndpoint(status_code=500, text="down")
        manager = make_manager(oauth_config, endpoint)

        with pytest.raises(AuthError):
            await manager.get_token()
        endpoint.status_code, endpoint.text = 200, None
        token = await manager.get_token()

        assert token.token == "token-2"

    async def test_network_failure_is_transport_error(self, oauth_config):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        manager = TokenManager(oauth_config, transport=httpx.MockTransport(refuse))

        with pytest.raises(TransportError):
            await manager.get_token()


class TestAccessToken:

    def test_expiry_is_exclusive(self):
        token = AccessToken(token="t", expires_at=100.0)
        assert token.is_valid(now=99.9) is True
        assert token.is_valid(now=100.0) is False

    def test_margin_capped_at_half_lifetime(self):
        response = TokenResponse(access_token="t", expires_in=5)
        token = AccessToken.from_response(response, [], now=100.0, refresh_margin=10)
        assert token.refresh_margin == 2.5
        assert token.is_valid(now=102.0) is True
        assert token.is_valid(now=102.5) is False

    def test_authorization_header(self):
        assert AccessToken(token="abc").authorization_header() == "Bearer abc"

    def test_token_endpoint_must_be_url(self):
        with pytest.raises(ValueError):
            OAuthConfig(client_id="a", client_secret="b", token_endpoint="auth.example.com/token")
