"""Client for the SugarCRM v10 REST API."""

from .core import (
    HttpMethod,
    InstanceProfile,
    ProfileNotFoundError,
    ConfigError,
    SugarRestError,
    AuthenticationRequired,
    NoRefreshToken,
    TransportError,
    SessionExpired,
    ApiError,
)
from .client import SugarClient, create_client

__all__ = [
    "HttpMethod",
    "InstanceProfile",
    "ProfileNotFoundError",
    "ConfigError",
    "SugarRestError",
    "AuthenticationRequired",
    "NoRefreshToken",
    "TransportError",
    "SessionExpired",
    "ApiError",
    "SugarClient",
    "create_client",
]
