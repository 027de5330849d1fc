"""Core components for the SugarCRM REST client."""

from .models import (
    API_PREFIX,
    TOKEN_PATH,
    AUTH_HEADER,
    CONTENT_TYPE,
    HttpMethod,
    Credentials,
    TokenPair,
    CallEnvelope,
    ErrorEnvelope,
    InstanceProfile,
    ProfileNotFoundError,
    ConfigError,
)
from .errors import (
    SugarRestError,
    AuthenticationRequired,
    NoRefreshToken,
    TransportError,
    SessionExpired,
    ApiError,
)
from .registry import register_profile, add_profile, get_profile, list_profiles, reset_registry
from .config_store import (
    get_base_dir,
    profile_config_path,
    save_json,
    load_json,
    save_profile,
    load_profile,
    list_saved_profiles,
)

__all__ = [
    "API_PREFIX",
    "TOKEN_PATH",
    "AUTH_HEADER",
    "CONTENT_TYPE",
    "HttpMethod",
    "Credentials",
    "TokenPair",
    "CallEnvelope",
    "ErrorEnvelope",
    "InstanceProfile",
    "ProfileNotFoundError",
    "ConfigError",
    "SugarRestError",
    "AuthenticationRequired",
    "NoRefreshToken",
    "TransportError",
    "SessionExpired",
    "ApiError",
    "register_profile",
    "add_profile",
    "get_profile",
    "list_profiles",
    "reset_registry",
    "get_base_dir",
    "profile_config_path",
    "save_json",
    "load_json",
    "save_profile",
    "load_profile",
    "list_saved_profiles",
]
