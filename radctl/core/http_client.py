"""
HTTP transport using httpx with TLS, timeout, rate limiting and token injection
Every API call goes through HTTPClient.send(); the response is returned
as-is and status interpretation is left to the caller
"""

import httpx
import ssl
import json as json_module
from typing import Optional, Dict, Any, Tuple, TYPE_CHECKING
from dataclasses import dataclass
from loguru import logger
from .exceptions import ServiceError, TransportError, ConfigError
from .rate_limiter import RateLimiter
from .version import get_version

USER_AGENT = f"radctl/{get_version()}"

if TYPE_CHECKING:
    from .config import ClientConfig
    from .token.token_manager import TokenManager


@dataclass
class HTTPResponse:
    """Rich response object providing access to all response data"""
    status_code: int
    headers: Dict[str, str]
    text: str
    content: bytes
    url: str

    def json(self) -> Any:
        """Parse response as JSON"""
        try:
            return json_module.loads(self.text)
        except json_module.JSONDecodeError as e:
            raise ServiceError(f"Failed to parse JSON response from {self.url}: {e}")

    def is_success(self) -> bool:
        """Check if response is successful (2xx)"""
        return 200 <= self.status_code < 300

    def is_not_found(self) -> bool:
        return self.status_code == 404


class HTTPClient:
    """
    HTTP transport bound to one base URI

    Plain paths are appended to the base URI, absolute http(s) URLs are
    used unchanged. Network failures become TransportError and are never
    retried here.
    """
    
    def __init__(self,
                 base_uri: str = "",
                 timeout: Optional[float] = None,
                 verify_ssl: bool = True,
                 rate_limiter: Optional[RateLimiter] = None,
                 token_manager: Optional["TokenManager"] = None,
                 headers: Optional[Dict[str, str]] = None,
                 basic_auth: Optional[Tuple[str, str]] = None,
                 debug: bool = False,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_uri = base_uri.rstrip('/')
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.rate_limiter = rate_limiter or RateLimiter()
        self.token_manager = token_manager
        self.headers = dict(headers or {})
        self.basic_auth = basic_auth
        self.debug = debug
        self.transport = transport
        self.logger = logger

    @classmethod
    def from_config(cls,
                    config: "ClientConfig",
                    token_manager: Optional["TokenManager"] = None,
                    rate_limiter: Optional[RateLimiter] = None,
                    transport: Optional[httpx.AsyncBaseTransport] = None) -> "HTTPClient":
        """Build the transport described by a provider configuration"""
        basic_auth = (config.username, config.password) if config.username else None
        return cls(
            base_uri=config.uri,
            timeout=config.request_timeout,
            verify_ssl=not config.insecure,
            rate_limiter=rate_limiter or RateLimiter(config.rate_limit),
            token_manager=token_manager,
            headers=config.headers,
            basic_auth=basic_auth,
            debug=config.debug,
            transport=transport,
        )
    
    def _create_client(self) -> httpx.AsyncClient:
        """Create configured httpx client"""
        
        # SSL verification settings
        if not self.verify_ssl:
            # insecure is an explicit opt-in: certificates and hostnames are not checked
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
            verify = ssl_context
        else:
            verify = True
            
        # Client configuration
        client_kwargs = {
            "timeout": self.timeout,
            "verify": verify,
            "headers": {"User-Agent": USER_AGENT}
        }

        if self.transport is not None:
            client_kwargs["transport"] = self.transport
        
        return httpx.AsyncClient(**client_kwargs)

    def build_url(self, path: str) -> str:
        """Join base URI and path unless path is already a full URL"""
        if path.startswith(('http://', 'https://')):
            return path
        if not path.startswith('/'):
            path = f"/{path}"
        return f"{self.base_uri}{path}"

    async def _request_headers(self, has_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        headers.update(self.headers)

        if self.token_manager is not None:
            token = await self.token_manager.get_token()
            if token is not None:
                headers["Authorization"] = token.authorization_header()
        return headers

    async def send(self, method: str, path: str, body: Optional[str] = None,
                   operation: str = "request") -> HTTPResponse:
        """
        Send one request and return the raw response

        Args:
            method: HTTP verb
            path: path below the base URI, or a full URL
            body: serialized JSON body, if any
            operation: name of the calling operation, used in log lines
        """
        method = method.upper()
        url = self.build_url(path)
        headers = await self._request_headers(body is not None)

        await self.rate_limiter.acquire()

        kwargs = {"headers": headers}
        if body is not None:
            kwargs["content"] = body.encode("utf-8")
        if self.basic_auth and "Authorization" not in headers:
            kwargs["auth"] = self.basic_auth

        self.logger.debug(f"{operation}: {method} {url}")
        if self.debug and body is not None:
            self.logger.debug(f"{operation}: request body: {body}")

        try:
            async with self._create_client() as client:
                response = await client.request(method, url, **kwargs)

        except httpx.TimeoutException as e:
            self.logger.error(f"{operation}: timeout for {method} {url}: {e}")
            raise TransportError(f"Request timed out: {method} {url}: {e}")

        except httpx.RequestError as e:
            error_msg = f"Request error: {str(e)}"
            self.logger.error(f"{operation}: request error for {method} {url}: {error_msg}")
            raise TransportError(f"Network error: {error_msg}")

        except httpx.InvalidURL as e:
            raise ConfigError(f"Invalid request URL {url}: {e}")

        result = HTTPResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            text=response.text,
            content=response.content,
            url=str(response.url)
        )

        self.logger.debug(f"{operation}: {method} {url} -> {result.status_code}")
        if self.debug:
            self.logger.debug(f"{operation}: response body: {result.text}")

        return result

    async def post_form(self,
                        url: str,
                        data: Dict[str, str],
                        headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
        """POST form data (application/x-www-form-urlencoded), bypassing rate limiting and tokens"""

        default_headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        if headers:
            default_headers.update(headers)

        try:
            async with self._create_client() as client:
                self.logger.debug(f"POST {url}")

                response = await client.post(url, data=data, headers=default_headers)

        except httpx.RequestError as e:
            error_msg = f"Request error: {str(e)}"
            self.logger.error(f"Request error for {url}: {error_msg}")
            raise TransportError(f"Network error: {error_msg}")

        return HTTPResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            text=response.text,
            content=response.content,
            url=str(response.url)
        )
