"""
Token-specific Pydantic models
"""

import time
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class OAuthConfig(BaseModel):
    """OAuth2 client-credentials settings"""
    client_id: str = Field(..., min_length=1, description="OAuth client id")
    client_secret: str = Field(..., min_length=1, description="OAuth client secret")
    token_endpoint: str = Field(..., description="Token endpoint URL")
    scopes: List[str] = Field(default_factory=list, description="Requested scopes")

    model_config = {"frozen": True}

    @field_validator('token_endpoint')
    @classmethod
    def validate_token_endpoint(cls, v):
        """Ensure token endpoint is an http(s) URL"""
        if not v.startswith(('https://', 'http://')):
            raise ValueError('token_endpoint must start with http:// or https://')
        return v


class TokenResponse(BaseModel):
    """HTTP response model from token endpoint"""
    access_token: str
    token_type: str = Field(default="Bearer")
    expires_in: Optional[int] = None
    scope: Optional[str] = None


class AccessToken(BaseModel):
    """
    Cached bearer token. expires_at is None for tokens without a lifetime.

    refresh_margin is how long before expires_at the token is considered
    stale; it never exceeds half the token's lifetime.
    """
    token: str
    expires_at: Optional[float] = None
    refresh_margin: float = 0.0
    scopes: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def from_response(cls, response: TokenResponse, requested_scopes: List[str], now: float,
                      refresh_margin: float = 0.0) -> "AccessToken":
        """Build a token from a grant response, falling back to requested scopes"""
        expires_at = None
        margin = 0.0
        if response.expires_in is not None:
            expires_at = now + response.expires_in
            margin = max(0.0, min(refresh_margin, response.expires_in / 2))
        scopes = response.scope.split() if response.scope else list(requested_scopes)
        return cls(token=response.access_token, expires_at=expires_at, refresh_margin=margin, scopes=scopes)

    def is_valid(self, now: Optional[float] = None, margin: Optional[float] = None) -> bool:
        """A token is usable only while its expiry (minus margin) is still ahead of now"""
        if self.expires_at is None:
            return True
        now = time.time() if now is None else now
        margin = self.refresh_margin if margin is None else margin
        return self.expires_at - margin > now

    def authorization_header(self) -> str:
        return f"Bearer {self.token}"
