"""Core data models for the SugarCRM REST client."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


API_PREFIX = "/rest/v10"
TOKEN_PATH = f"{API_PREFIX}/oauth2/token/"
AUTH_HEADER = "oauth-token"
CONTENT_TYPE = "application/json;charset=utf-8"


class HttpMethod(Enum):
    """HTTP verbs accepted by the v10 API."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def carries_body(self) -> bool:
        """Only POST and PUT requests serialize a JSON body."""
        return self in (HttpMethod.POST, HttpMethod.PUT)


@dataclass(frozen=True)
class Credentials:
    """
    Login credentials for the OAuth2 password grant.

    Only used to build the login request; the client keeps the
    returned tokens, not the username and password.
    """
    username: str
    password: str = field(repr=False)
    client_id: str = "sugar"
    client_secret: str = field(default="", repr=False)
    platform: str = "base"

    def password_grant_body(self) -> dict[str, str]:
        """Build the token endpoint body for a password grant."""
        return {
            "grant_type": "password",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": self.username,
            "password": self.password,
            "platform": self.platform,
        }


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh token pair; both empty or both set."""
    access_token: str = field(default="", repr=False)
    refresh_token: str = field(default="", repr=False)

    def __post_init__(self):
        if bool(self.access_token) != bool(self.refresh_token):
            raise ValueError("access_token and refresh_token must be set together")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    @classmethod
    def from_response(cls, result: Any) -> "TokenPair":
        """
        Build a TokenPair from a token endpoint response.

        Args:
            result: Decoded JSON from POST /rest/v10/oauth2/token/

        Returns:
            The new TokenPair

        Raises:
            ValueError: If either token is missing or empty
        """
        if not isinstance(result, dict):
            raise ValueError("Token response is not a JSON object")

        access_token = result.get("access_token")
        refresh_token = result.get("refresh_token")
        if not access_token or not refresh_token:
            raise ValueError("Token response is missing access_token or refresh_token")

        return cls(access_token=str(access_token), refresh_token=str(refresh_token))


@dataclass(frozen=True)
class CallEnvelope:
    """A single API call: relative path, verb and optional body."""
    path: str
    method: HttpMethod
    body: Any = None

    @property
    def is_token_call(self) -> bool:
        return self.path == TOKEN_PATH


@dataclass(frozen=True)
class ErrorEnvelope:
    """Normalized shape of a failure response body."""
    error_code: str
    error_message: str


@dataclass
class InstanceProfile:
    """Connection settings for one CRM instance."""
    name: str
    endpoint: str
    client_id: str = "sugar"
    client_secret: str = field(default="", repr=False)
    platform: str = "base"
    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0

    def to_dict(self) -> dict[str, Any]:
        """Convert InstanceProfile to a dictionary."""
        return {
            "name": self.name,
            "endpoint": self.endpoint,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "platform": self.platform,
            "timeout_seconds": self.timeout_seconds,
            "connect_timeout_seconds": self.connect_timeout_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstanceProfile":
        """Create InstanceProfile from a dictionary."""
        return cls(
            name=data["name"],
            endpoint=data["endpoint"],
            client_id=data.get("client_id", "sugar"),
            client_secret=data.get("client_secret", ""),
            platform=data.get("platform", "base"),
            timeout_seconds=float(data.get("timeout_seconds", 30.0)),
            connect_timeout_seconds=float(data.get("connect_timeout_seconds", 10.0)),
        )


class ProfileNotFoundError(Exception):
    """Raised when an instance profile is not found in the registry."""
    pass


class ConfigError(Exception):
    """Raised when there is an error loading or saving configuration."""
    pass
