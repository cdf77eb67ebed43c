"""
OAuth2 client-credentials token lifecycle
"""

import asyncio
import time
from typing import Callable, Optional

import httpx
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from .token_models import OAuthConfig, AccessToken, TokenResponse
from ..exceptions import AuthError, ServiceError
from ..http_client import HTTPClient


class TokenManager:
    """
    Hands out a valid bearer token, fetching a new one on or before expiry

    One instance is shared by every request of a provider configuration.
    Concurrent callers that find the cache stale wait for a single grant
    request and reuse its result.
    """

    def __init__(self,
                 oauth_config: Optional[OAuthConfig],
                 timeout: Optional[float] = None,
                 verify_ssl: bool = True,
                 refresh_margin: float = 10.0,
                 clock: Callable[[], float] = time.time,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.oauth_config = oauth_config
        self.refresh_margin = refresh_margin
        self.logger = logger
        self._clock = clock
        self._token: Optional[AccessToken] = None
        self._lock = asyncio.Lock()
        self.http_client = HTTPClient(timeout=timeout, verify_ssl=verify_ssl, transport=transport)
        # bumped on every successful grant
        self._generation = 0

    @property
    def enabled(self) -> bool:
        return self.oauth_config is not None

    def _usable(self, token: Optional[AccessToken]) -> bool:
        return token is not None and token.is_valid(self._clock())

    async def get_token(self) -> Optional[AccessToken]:
        """Return a currently valid token, or None when OAuth is not configured"""
        if not self.enabled:
            return None

        if self._usable(self._token):
            return self._token

        generation = self._generation
        async with self._lock:
            if self._usable(self._token):
                return self._token
            # a grant finished while we waited; take it unless already expired
            token = self._token
            if generation != self._generation and token is not None and token.is_valid(self._clock(), margin=0.0):
                return token
            self._token = await self._request_token()
            self._generation += 1
            return self._token

    def invalidate(self) -> None:
        """Drop the cached token so the next caller performs a fresh grant"""
        if self._token is not None:
            self.logger.debug("Discarding cached access token")
        self._token = None

    async def _request_token(self) -> AccessToken:
        """Perform the client-credentials grant"""
        config = self.oauth_config
        form_data = {
            "grant_type": "client_credentials",
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        }
        if config.scopes:
            form_data["scope"] = " ".join(config.scopes)

        self.logger.debug(f"Requesting access token for client_id={config.client_id}")
        response = await self.http_client.post_form(config.token_endpoint, form_data)

        if not response.is_success():
            self.logger.error(f"Token request failed with HTTP {response.status_code}")
            raise AuthError(f"Token endpoint returned HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
            token_response = TokenResponse(**data)
        except (ServiceError, TypeError, PydanticValidationError) as e:
            raise AuthError(f"Unparsable token response: {e}")

        token = AccessToken.from_response(token_response, config.scopes, self._clock(), self.refresh_margin)
        self.logger.debug(f"✅ Access token retrieved, expires in {token_response.expires_in or 'N/A'} seconds")
        return token
