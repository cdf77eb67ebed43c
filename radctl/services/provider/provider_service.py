"""
Provider Service - turns provider settings into a ready APIClient
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx
from loguru import logger

from ...core.api import APIClient
from ...core.config import ClientConfig, ConfigLoader, build_client_config
from ...core.exceptions import ConfigError
from ...core.logger import setup_logger


class ProviderService:
    """
    Holds the configured APIClient for the process

    Configuring again replaces the client and discards the cached token of
    the previous one.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.logger = logger
        self.config_loader = ConfigLoader()
        self.transport = transport
        self._client: Optional[APIClient] = None

    @property
    def client(self) -> APIClient:
        if self._client is None:
            raise ConfigError("Provider has not been configured")
        return self._client

    async def configure(self, settings: Union[ClientConfig, Dict[str, Any]]) -> APIClient:
        """Validate settings, build the client and run the optional test request"""
        config = settings if isinstance(settings, ClientConfig) else build_client_config(settings)

        if config.debug:
            setup_logger("DEBUG")

        if self._client is not None:
            self.logger.debug("Reconfiguring provider, invalidating cached credentials")
            self._client.invalidate()
            self._client = None

        client = APIClient(config, transport=self.transport)

        if config.test_path:
            await self._check_test_path(client, config.test_path)

        self._client = client
        self.logger.debug(f"Provider configured for {config.uri}")
        return client

    async def configure_from_file(self, config_path: Optional[Union[str, Path]] = None,
                                  overrides: Optional[Dict[str, Any]] = None) -> APIClient:
        """Load YAML settings (or only REST_API_* env vars) and configure"""
        data = await self.config_loader.load_yaml(config_path) if config_path else {}
        data.update(overrides or {})
        return await self.configure(data)

    async def _check_test_path(self, client: APIClient, test_path: str) -> None:
        response = await client.send("GET", test_path, operation="configure")
        if not response.is_success():
            raise ConfigError(
                f"A test request to {test_path} at {client.config.uri} did not return an OK response "
                f"(HTTP {response.status_code}): {response.text}"
            )
