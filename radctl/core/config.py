"""
Core configuration utilities for radctl
Handles YAML loading and the provider-wide client configuration
"""

from pathlib import Path
from typing import Dict, Any, List, Optional
from urllib.parse import urlparse
import yaml
from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError, ValidationError
from .token.token_models import OAuthConfig


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


class ClientConfig(BaseSettings):
    """
    Immutable per-provider settings.

    Every field can come from a REST_API_* environment variable; values
    passed explicitly take precedence.
    """
    uri: str = Field(..., description="Base URI of the REST API, prefix of every request")
    insecure: bool = Field(default=False, description="Skip TLS certificate verification")
    timeout: float = Field(default=0, description="Request timeout in seconds (0 disables)")
    rate_limit: Optional[float] = Field(default=None, description="Requests per second ceiling (None = unbounded)")
    debug: bool = Field(default=False, description="Log request and response bodies")
    oauth: Optional[OAuthConfig] = Field(default=None, description="OAuth client-credentials block")

    headers: Dict[str, str] = Field(default_factory=dict, description="Static headers sent with every request")
    username: Optional[str] = Field(default=None, description="Basic auth username")
    password: Optional[str] = Field(default=None, description="Basic auth password")
    id_attribute: str = Field(default="id", description="Response field holding the object id")
    copy_keys: List[str] = Field(default_factory=list, description="Fields echoed back from a read on update")
    create_method: str = "POST"
    read_method: str = "GET"
    update_method: str = "PUT"
    destroy_method: str = "DELETE"
    test_path: Optional[str] = Field(default=None, description="Path checked with GET when configuring")
    operator_id: Optional[str] = Field(default=None, description="Default operator for profile paths")

    model_config = SettingsConfigDict(env_prefix="REST_API_", frozen=True, extra="forbid")

    @field_validator('uri')
    @classmethod
    def validate_uri(cls, v):
        """Base URI must be absolute; the trailing slash is dropped so paths join cleanly"""
        parsed = urlparse(v or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError('uri must be an absolute http:// or https:// URL')
        return v.rstrip('/')

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        if v < 0:
            raise ValueError('timeout must not be negative')
        return v

    @field_validator('rate_limit')
    @classmethod
    def validate_rate_limit(cls, v):
        if v is not None and v <= 0:
            raise ValueError('rate_limit must be greater than zero')
        return v

    @field_validator('create_method', 'read_method', 'update_method', 'destroy_method')
    @classmethod
    def validate_method(cls, v):
        method = v.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f'unsupported HTTP method: {v}')
        return method

    @model_validator(mode='after')
    def validate_basic_auth(self):
        if bool(self.username) != bool(self.password):
            raise ValueError('username and password must be set together')
        return self

    @property
    def request_timeout(self) -> Optional[float]:
        """Timeout in the form httpx expects"""
        return self.timeout or None


def build_client_config(data: Dict[str, Any]) -> ClientConfig:
    """Validate raw settings into a ClientConfig"""
    try:
        return ClientConfig(**data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid provider configuration: {e}")


class ConfigLoader:
    """Core utility for configuration loading and parsing"""
    
    def __init__(self):
        self.logger = logger
    
    async def load_yaml(self, config_path: str | Path) -> Dict[str, Any]:
        """Load and parse YAML configuration file"""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config {config_path}: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigError(f"Config {config_path} must be a mapping")

        self.logger.info(f"Loaded config from {config_path}")
        return config
    