"""Configuration loader for cvmfsd.

Resolves the daemon configuration from a YAML file, CVMFSD_* environment
variables and built-in defaults.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .models import Config

logger = logging.getLogger(__name__)

CONFIG_NAME = "config.yaml"
CONFIG_ENV = "CVMFSD_CONFIG"

EXAMPLE_HEADER = """# docker-volume-cvmfs configuration
#
# Copy this to one of:
#   $HOME/.docker-volume-cvmfs/config.yaml
#   /etc/docker-volume-cvmfs/config.yaml
#   ./config.yaml
# or point CVMFSD_CONFIG at it.
#
# Configuration precedence (highest to lowest):
# 1. Command line flags (--mountpoint, --socket, --verbose)
# 2. Environment variables (CVMFSD_SECTION_KEY)
# 3. This configuration file
# 4. Built-in defaults

"""


def _optional(convert: Callable[[str], Any]) -> Callable[[str], Any]:
    """Wrap convert so that "none" (any case) maps to None."""
    return lambda value: None if value.lower() == "none" else convert(value)


def _comma_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# (section, key) -> parser for the raw environment string
ENV_OVERRIDES: dict[tuple[str, str], Callable[[str], Any]] = {
    ("daemon", "socket"): str,
    ("daemon", "log_level"): str,
    ("cvmfs", "mountpoint"): str,
    ("cvmfs", "config_dir"): str,
    ("cvmfs", "cache_root"): str,
    ("cvmfs", "base_configs"): _comma_list,
    ("cvmfs", "service_uid"): _optional(int),
    ("cvmfs", "default_tag"): str,
    ("cvmfs", "mount_timeout"): _optional(float),
    ("cvmfs", "registry_file"): _optional(str),
}


def get_config_search_paths() -> list[Path]:
    """Directories searched for config.yaml, in order.

    Returns:
        $HOME/.docker-volume-cvmfs, /etc/docker-volume-cvmfs, current directory
    """
    return [
        Path.home() / ".docker-volume-cvmfs",
        Path("/etc/docker-volume-cvmfs"),
        Path("."),
    ]


def find_config_path() -> Path | None:
    """Locate the configuration file.

    CVMFSD_CONFIG, when set, wins over the search paths.

    Returns:
        Path to configuration file, or None if there is none
    """
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)

    return next(
        (directory / CONFIG_NAME for directory in get_config_search_paths() if (directory / CONFIG_NAME).is_file()),
        None,
    )


def load_config(config_path: Path | None = None) -> Config:
    """Load daemon configuration.

    Precedence (highest to lowest): CVMFSD_SECTION_KEY environment
    variables, the configuration file, defaults. A file that cannot be
    parsed is logged and ignored.

    Args:
        config_path: Configuration file to use instead of searching for one

    Returns:
        Loaded configuration
    """
    path = config_path or find_config_path()

    config = Config.get_default()
    if path is not None and path.exists():
        logger.info(f"Using config file: {path}")
        try:
            config = Config.load_from_file(path)
        except (OSError, ValueError) as e:
            logger.error(f"Ignoring config file {path}: {e}")
    else:
        logger.debug("No configuration file found, using defaults")

    return _apply_env_overrides(config)


def _apply_env_overrides(config: Config) -> Config:
    """Apply CVMFSD_SECTION_KEY environment variables.

    Examples:
        CVMFSD_DAEMON_SOCKET=/run/docker/plugins/cvmfs-test.sock
        CVMFSD_CVMFS_MOUNTPOINT=/mnt/cvmfs
        CVMFSD_CVMFS_BASE_CONFIGS=/etc/cvmfs/default.conf,/etc/cvmfs/default.local
        CVMFSD_CVMFS_SERVICE_UID=none

    A value that does not parse or validate is logged and skipped; the
    other overrides still apply.
    """
    data = config.model_dump()
    changed = False

    for (section, key), parse in ENV_OVERRIDES.items():
        env_var = f"CVMFSD_{section.upper()}_{key.upper()}"
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        try:
            candidate = {**data[section], key: parse(raw)}
            type(getattr(config, section)).model_validate(candidate)
        except ValueError as e:
            logger.error(f"Ignoring {env_var}={raw!r}: {e}")
            continue
        data[section] = candidate
        changed = True
        logger.info(f"Environment override: {section}.{key} = {data[section][key]}")

    return Config.model_validate(data) if changed else config


def save_example_config(path: Path) -> Path:
    """Write the default configuration, with a usage header, to path.

    Raises:
        OSError: If file cannot be written
    """
    Config.get_default().save_to_file(path, header=EXAMPLE_HEADER)
    logger.info(f"Saved example configuration to {path}")
    return path
