"""
Core exceptions for radctl
"""

class RadctlError(Exception):
    """Base exception for radctl"""
    pass

class ConfigError(RadctlError):
    """Configuration related errors"""
    pass

class ValidationError(ConfigError):
    """Malformed configuration or resource data (never sent over the wire)"""
    pass

class ServiceError(RadctlError):
    """Service layer errors"""
    pass


class TransportError(ServiceError):
    """Network level failure: connection refused, TLS failure, timeout"""
    pass


class AuthError(ServiceError):
    """OAuth token grant failures"""
    pass


class ApiError(ServiceError):
    """Remote API answered with an unexpected status"""

    def __init__(self, status: int, body: str, method: str = None, url: str = None):
        self.status = status
        self.body = body
        self.method = method
        self.url = url
        target = f"{method} {url}: " if method and url else ""
        super().__init__(f"{target}unexpected response code '{status}': {body}")


class NotFoundError(ServiceError):
    """Object needed by an operation could not be found or was ambiguous"""

    def __init__(self, message: str, matches: int = 0):
        self.matches = matches
        super().__init__(message)
