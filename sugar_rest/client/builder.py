"""
Builder for configured SugarCRM clients.

Provides create_client, which turns a named instance profile into a
ready SugarClient.
"""

import logging

import httpx

from ..core import add_profile, get_profile, load_profile, ProfileNotFoundError
from .sugar_client import SugarClient

logger = logging.getLogger(__name__)


def create_client(
    profile_name: str,
    username: str | None = None,
    password: str | None = None,
    http_client: httpx.Client | None = None,
) -> SugarClient:
    """
    Create a SugarClient from a registered or saved instance profile.

    Args:
        profile_name: Name of the instance profile
        username: Optional username; logs in when given with a password
        password: Optional password
        http_client: Optional httpx client (created if None)

    Returns:
        Configured SugarClient

    Raises:
        ProfileNotFoundError: If the profile is neither registered nor saved
        ConfigError: If the saved profile is invalid

    Example:
        >>> client = create_client('production', 'admin', 'secret')
        >>> client.me()
        >>> client.close()
    """
    try:
        # First try the in-memory registry
        profile = get_profile(profile_name)
    except ProfileNotFoundError:
        # Fall back to loading from disk
        try:
            profile = add_profile(load_profile(profile_name))
        except ProfileNotFoundError as e:
            raise ProfileNotFoundError(
                f"Profile '{profile_name}' not found. "
                f"Register it first with 'sugar-rest register'."
            ) from e

    logger.debug(f"Creating client for profile '{profile.name}' ({profile.endpoint})")

    return SugarClient(
        endpoint=profile.endpoint,
        username=username,
        password=password,
        client_id=profile.client_id,
        client_secret=profile.client_secret,
        platform=profile.platform,
        http_client=http_client,
        timeout_seconds=profile.timeout_seconds,
        connect_timeout_seconds=profile.connect_timeout_seconds,
    )
