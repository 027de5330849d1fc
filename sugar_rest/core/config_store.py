"""Configuration and persistence for instance profiles."""

import json
import logging
import os
from pathlib import Path

from .models import InstanceProfile, ConfigError, ProfileNotFoundError

logger = logging.getLogger(__name__)

PROFILE_SUFFIX = "profile"


def get_base_dir() -> Path:
    """
    Get the base directory for storing configuration.

    The directory is determined by:
    1. Environment variable SUGAR_REST_HOME if set
    2. Otherwise, ~/.sugar_rest

    The directory is created if it does not exist.

    Returns:
        Path to the base directory
    """
    env_home = os.environ.get("SUGAR_REST_HOME")
    if env_home:
        base_dir = Path(env_home)
    else:
        base_dir = Path.home() / ".sugar_rest"

    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir


def profile_config_path(name: str, suffix: str = PROFILE_SUFFIX) -> Path:
    """
    Get the path for a profile's configuration file.

    Args:
        name: Profile name
        suffix: File suffix (default: "profile")

    Returns:
        Path to the configuration file
    """
    return get_base_dir() / f"{name}_{suffix}.json"


def save_json(name: str, suffix: str, data: dict) -> Path:
    """
    Save a dictionary as JSON to a profile configuration file.

    Returns:
        Path to the saved file

    Raises:
        ConfigError: If the file cannot be written
    """
    path = profile_config_path(name, suffix)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved JSON to {path}")
        return path
    except (OSError, TypeError) as e:
        raise ConfigError(f"Failed to save JSON to {path}: {e}")


def load_json(name: str, suffix: str) -> dict:
    """
    Load a dictionary from a profile configuration file.

    Raises:
        ConfigError: If the file does not exist or JSON is invalid
    """
    path = profile_config_path(name, suffix)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, "r") as f:
            data = json.load(f)
        logger.debug(f"Loaded JSON from {path}")
        return data
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to load JSON from {path}: {e}")


def save_profile(profile: InstanceProfile) -> Path:
    """Save an InstanceProfile to disk."""
    return save_json(profile.name, PROFILE_SUFFIX, profile.to_dict())


def load_profile(name: str) -> InstanceProfile:
    """
    Load an InstanceProfile from disk.

    Raises:
        ProfileNotFoundError: If no profile file exists for the name
        ConfigError: If the file is invalid
    """
    if not profile_config_path(name).exists():
        raise ProfileNotFoundError(f"Profile '{name}' not found in {get_base_dir()}")

    data = load_json(name, PROFILE_SUFFIX)
    try:
        return InstanceProfile.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Failed to parse profile '{name}': {e}")


def list_saved_profiles() -> list[InstanceProfile]:
    """
    Load every profile saved in the base directory.

    Unreadable files are skipped with a warning.
    """
    profiles = []
    for path in sorted(get_base_dir().glob(f"*_{PROFILE_SUFFIX}.json")):
        name = path.stem[: -len(f"_{PROFILE_SUFFIX}")]
        try:
            profiles.append(load_profile(name))
        except ConfigError as e:
            logger.warning(f"Failed to load profile '{name}': {e}")
    return profiles
