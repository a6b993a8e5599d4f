"""
Configuration management for coursefs.

Handles loading and saving user configuration from:
- XDG config directory: ~/.config/coursefs/config.json
- Fallback: ~/.coursefs/config.json

Environment variables (COURSEFS_USERNAME, COURSEFS_PASSWORD,
COURSEFS_COURSE_ID, COURSEFS_BASE_URL) take precedence over the file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, field

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://elearning.uni-bremen.de/jsonapi.php/v1/"

ENV_OVERRIDES = {
    "COURSEFS_USERNAME": "username",
    "COURSEFS_PASSWORD": "password",
    "COURSEFS_COURSE_ID": "course_id",
    "COURSEFS_BASE_URL": "base_url",
}


@dataclass
class RemoteConfig:
    """Connection settings for the course file store."""
    base_url: str = DEFAULT_BASE_URL
    username: str = ""
    password: str = ""
    course_id: str = ""
    timeout: float = 30.0


@dataclass
class BuildConfig:
    """Tree build settings."""
    max_workers: int = 8
    follow_pages: bool = True
    page_limit: int = 100
    root: str = ""


@dataclass
class CLIConfig:
    """CLI default options."""
    verbose: bool = False


@dataclass
class CourseFSConfig:
    """Main coursefs configuration."""
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    cli: CLIConfig = field(default_factory=CLIConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "remote": asdict(self.remote),
            "build": asdict(self.build),
            "cli": asdict(self.cli),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CourseFSConfig':
        """Create from dictionary."""
        try:
            return cls(
                remote=RemoteConfig(**data.get("remote", {})),
                build=BuildConfig(**data.get("build", {})),
                cli=CLIConfig(**data.get("cli", {})),
            )
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key: {e}") from e

    def validate(self) -> None:
        """Check that the configuration can be used to open a course.

        Raises:
            ConfigError: If the course id is missing, the base URL is not
                http(s), or the build settings are out of range
        """
        if not self.remote.course_id:
            raise ConfigError("course_id is required")
        if not self.remote.base_url.startswith(("http://", "https://")):
            raise ConfigError(f"invalid base_url: {self.remote.base_url!r}")
        if self.build.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")
        if self.build.page_limit < 1:
            raise ConfigError("page_limit must be at least 1")


def get_config_path() -> Path:
    """
    Get configuration file path.

    Follows XDG Base Directory specification:
    1. $XDG_CONFIG_HOME/coursefs/config.json (usually ~/.config/coursefs/config.json)
    2. Fallback: ~/.coursefs/config.json

    Returns:
        Path to config file
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "coursefs" / "config.json"

    default_config_home = Path.home() / ".config"
    if default_config_home.exists():
        config_dir = default_config_home / "coursefs"
    else:
        config_dir = Path.home() / ".coursefs"

    return config_dir / "config.json"


def apply_env_overrides(config: CourseFSConfig) -> CourseFSConfig:
    """Apply COURSEFS_* environment variables to the remote settings."""
    for var, attr in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            setattr(config.remote, attr, value)
    return config


def load_config(path: Optional[Path] = None) -> CourseFSConfig:
    """
    Load configuration from file, then apply environment overrides.

    Args:
        path: Config file to read (default: get_config_path())

    Returns:
        CourseFSConfig instance with loaded values or defaults
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return apply_env_overrides(CourseFSConfig())

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
        config = CourseFSConfig.from_dict(data)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")
        config = CourseFSConfig()

    return apply_env_overrides(config)


def save_config(config: CourseFSConfig, path: Optional[Path] = None) -> Path:
    """
    Save configuration to file.

    Args:
        config: Configuration to save
        path: Destination (default: get_config_path())

    Returns:
        Path the configuration was written to
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def update_config(
    path: Optional[Path] = None,
    # Remote settings
    base_url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    course_id: Optional[str] = None,
    timeout: Optional[float] = None,
    # Build settings
    max_workers: Optional[int] = None,
    follow_pages: Optional[bool] = None,
    page_limit: Optional[int] = None,
    root: Optional[str] = None,
) -> CourseFSConfig:
    """
    Update configuration.

    Only updates provided values, leaving others unchanged. Environment
    overrides are not written back to the file.

    Raises:
        ConfigError: If the existing file cannot be read or parsed
    """
    config_path = path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Cannot update {config_path}: {e}") from e
        config = CourseFSConfig.from_dict(data)
    else:
        config = CourseFSConfig()

    if base_url is not None:
        config.remote.base_url = base_url
    if username is not None:
        config.remote.username = username
    if password is not None:
        config.remote.password = password
    if course_id is not None:
        config.remote.course_id = course_id
    if timeout is not None:
        config.remote.timeout = timeout

    if max_workers is not None:
        config.build.max_workers = max_workers
    if follow_pages is not None:
        config.build.follow_pages = follow_pages
    if page_limit is not None:
        config.build.page_limit = page_limit
    if root is not None:
        config.build.root = root

    save_config(config, config_path)
    return config
