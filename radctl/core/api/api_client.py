"""
Provider-wide API handle: configuration plus the shared transport pieces
"""

from typing import Optional

import httpx
from loguru import logger

from ..config import ClientConfig
from ..http_client import HTTPClient, HTTPResponse
from ..rate_limiter import RateLimiter
from ..token.token_manager import TokenManager


class APIClient:
    """
    Owns the pieces that outlive a single operation: the rate limiter and
    the token manager. Remote objects are built per operation on top of it.
    """

    def __init__(self,
                 config: ClientConfig,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 token_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.logger = logger
        self.rate_limiter = RateLimiter(config.rate_limit)
        self.token_manager = TokenManager(
            config.oauth,
            timeout=config.request_timeout,
            verify_ssl=not config.insecure,
            transport=token_transport or transport,
        )
        self.http_client = HTTPClient.from_config(
            config,
            token_manager=self.token_manager,
            rate_limiter=self.rate_limiter,
            transport=transport,
        )
        if config.insecure:
            self.logger.warning(f"TLS certificate verification is disabled for {config.uri}")

    async def send(self, method: str, path: str, body: Optional[str] = None,
                   operation: str = "request") -> HTTPResponse:
        return await self.http_client.send(method, path, body, operation=operation)

    def invalidate(self) -> None:
        """Forget cached credentials, used when the provider is reconfigured"""
        self.token_manager.invalidate()
