"""Registry of named CRM instance profiles."""

import logging

from .models import InstanceProfile, ProfileNotFoundError

logger = logging.getLogger(__name__)

# In-memory storage for registered profiles
_PROFILES: dict[str, InstanceProfile] = {}


def register_profile(
    name: str,
    endpoint: str,
    client_id: str = "sugar",
    client_secret: str = "",
    platform: str = "base",
    timeout_seconds: float = 30.0,
    connect_timeout_seconds: float = 10.0,
) -> InstanceProfile:
    """
    Register a CRM instance profile.

    Args:
        name: Profile name (e.g., "production")
        endpoint: Base URL of the Sugar instance
        client_id: OAuth client identifier
        client_secret: OAuth client secret
        platform: Sugar platform name for the session
        timeout_seconds: Read/write timeout for requests
        connect_timeout_seconds: Connect timeout for requests

    Returns:
        The registered InstanceProfile

    Note:
        If name already exists, it will be overwritten.
    """
    if name in _PROFILES:
        logger.warning(f"Profile '{name}' already exists. Overwriting.")

    profile = InstanceProfile(
        name=name,
        endpoint=endpoint,
        client_id=client_id,
        client_secret=client_secret,
        platform=platform,
        timeout_seconds=timeout_seconds,
        connect_timeout_seconds=connect_timeout_seconds,
    )

    _PROFILES[name] = profile
    logger.info(f"Registered profile: {name} ({endpoint})")

    return profile


def add_profile(profile: InstanceProfile) -> InstanceProfile:
    """Register an already built profile, e.g. one loaded from disk."""
    return register_profile(
        name=profile.name,
        endpoint=profile.endpoint,
        client_id=profile.client_id,
        client_secret=profile.client_secret,
        platform=profile.platform,
        timeout_seconds=profile.timeout_seconds,
        connect_timeout_seconds=profile.connect_timeout_seconds,
    )


def get_profile(name: str) -> InstanceProfile:
    """
    Retrieve a profile from the registry.

    Raises:
        ProfileNotFoundError: If the profile is not in the registry
    """
    if name not in _PROFILES:
        raise ProfileNotFoundError(f"Profile '{name}' not found in registry")

    return _PROFILES[name]


def list_profiles() -> list[InstanceProfile]:
    """List all registered profiles sorted by name."""
    return sorted(_PROFILES.values(), key=lambda p: p.name)


def reset_registry() -> None:
    """
    Clear all profiles from the registry.

    This is primarily intended for testing.
    """
    global _PROFILES
    _PROFILES = {}
    logger.debug("Registry reset")
