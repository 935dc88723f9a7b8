"""Configuration models for cvmfsd.

These models define the structure of the daemon's configuration file:
where the plugin socket lives and how repositories are mounted on the host.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from cvmfs_library.services.config_generator import DEFAULT_BASE_CONFIGS
from cvmfs_library.services.config_generator import DEFAULT_SERVICE_UID

SOCKET_ADDRESS = "/run/docker/plugins/cvmfs.sock"
DEFAULT_MOUNTPOINT = "/cvmfs"


class DaemonConfig(BaseModel):
    """Configuration for the plugin daemon."""

    socket: str = Field(
        default=SOCKET_ADDRESS,
        description="Unix socket the docker volume plugin listens on",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )


class CvmfsConfig(BaseModel):
    """Configuration for repository mounts."""

    mountpoint: str = Field(
        default=DEFAULT_MOUNTPOINT,
        description="Root directory for <repo>/<tag> mounts",
    )
    config_dir: str = Field(
        default="/etc/cvmfs",
        description="Directory receiving generated <repo>-<tag> client configs",
    )
    cache_root: str = Field(
        default="/var/cache",
        description="Root of the per <repo>/<tag> client caches",
    )
    base_configs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BASE_CONFIGS),
        description="Base client configs concatenated into every generated config, in order",
    )
    service_uid: int | None = Field(
        default=DEFAULT_SERVICE_UID,
        description="Owner of the cache directories (the cvmfs user); null skips chown",
    )
    default_tag: str = Field(
        default="trunk",
        description="Tag mounted when a volume name carries none",
    )
    mount_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for mount/umount (null waits forever)",
    )
    registry_file: str | None = Field(
        default=None,
        description="Volume registry snapshot (defaults to <mountpoint>/docker.cache)",
    )

    @property
    def registry_path(self) -> Path:
        if self.registry_file:
            return Path(self.registry_file)
        return Path(self.mountpoint) / "docker.cache"


class Config(BaseModel):
    """Complete daemon configuration."""

    daemon: DaemonConfig = Field(default_factory=DaemonConfig)
    cvmfs: CvmfsConfig = Field(default_factory=CvmfsConfig)

    @classmethod
    def load_from_file(cls, path: Path) -> Config:
        """Load configuration from a YAML file.

        Sections and keys that are missing fall back to their defaults; an
        empty file gives the default configuration.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not valid YAML or fails validation
        """
        text = path.read_text()
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping with 'daemon' and 'cvmfs' sections")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration in {path}: {e}") from e

    def save_to_file(self, path: Path, header: str = "") -> None:
        """Write this configuration as YAML, optionally preceded by a comment header.

        Raises:
            OSError: If file cannot be written
        """
        body = yaml.safe_dump(self.model_dump(mode="json"), default_flow_style=False, sort_keys=False)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(header + body)

    @classmethod
    def get_default(cls) -> Config:
        return cls()
