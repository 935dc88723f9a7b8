"""Per-mount CVMFS client configuration.

Builds the config artifact passed to `mount -t cvmfs -o config=...` for one
(repository, tag) pair: the shared base configuration followed by a block
that points the client at a private cache and pins either a root hash or a
repository tag.

Contract:
- Inputs: RepositoryId
- Outputs: Path to the generated config file
- Side Effects: Writes the config file on every call, creates the cache
  base directory and hands it to the cvmfs service user
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Sequence
from pathlib import Path

from cvmfs_library.errors import ConfigGenerationError
from cvmfs_library.models.volumes import RepositoryId
from cvmfs_library.models.volumes import TagType
from cvmfs_library.utils.volume_names import check_path_component

logger = logging.getLogger(__name__)

DEFAULT_BASE_CONFIGS = (
    "/etc/cvmfs/default.conf",
    "/etc/cvmfs/default.local",
    "/etc/cvmfs/domain.d/cern.ch.conf",
)
DEFAULT_SERVICE_UID = 995


class ConfigGenerator:
    """Generates config artifacts and owns the per-tag cache directories."""

    def __init__(
        self,
        config_dir: Path,
        cache_root: Path,
        base_configs: Sequence[str | Path] = DEFAULT_BASE_CONFIGS,
        service_uid: int | None = DEFAULT_SERVICE_UID,
    ) -> None:
        """Initialize generator.

        Args:
            config_dir: Directory receiving the generated <repo>-<tag> files
            cache_root: Root under which <repo>/<tag> cache bases are created
            base_configs: Ordered base configuration files to concatenate
            service_uid: Owner of the shared cache directory (None skips chown)
        """
        self.config_dir = Path(config_dir)
        self.cache_root = Path(cache_root)
        self.base_configs = [Path(p) for p in base_configs]
        self.service_uid = service_uid

    def config_path(self, repo: str, tag: str) -> Path:
        return self.config_dir / f"{repo}-{tag}"

    def cache_base(self, repo: str, tag: str) -> Path:
        """Cache directory of (repo, tag), always a child of cache_root.

        Raises:
            InvalidVolumeNameError: If repo or tag is not a usable path component
        """
        check_path_component(repo, "repository", repo)
        check_path_component(repo, "tag", tag)
        return self.cache_root / repo / tag

    def generate(self, repo_id: RepositoryId) -> Path:
        """Write a fresh config artifact for repo_id.

        Args:
            repo_id: Repository, tag and tag kind to configure

        Returns:
            Path to the written config file

        Raises:
            ConfigGenerationError: If a base source is unreadable or the
                config file / cache directory cannot be created
        """
        repo, tag = repo_id.repository, repo_id.tag
        path = self.config_path(repo, tag)
        cache_base = self.cache_base(repo, tag)

        try:
            content = b"".join(source.read_bytes() for source in self.base_configs)
        except OSError as e:
            raise ConfigGenerationError(repo, f"failed to read base config :: {e}") from e

        try:
            shared = cache_base / "shared"
            shared.mkdir(mode=0o777, parents=True, exist_ok=True)
            if self.service_uid is not None:
                os.chown(shared, self.service_uid, 0)
        except OSError as e:
            raise ConfigGenerationError(repo, f"failed to prepare cache base {cache_base} :: {e}") from e

        lines = [f"CVMFS_CACHE_BASE={cache_base}"]
        if repo_id.tag_type == TagType.HASH:
            lines.append(f"CVMFS_ROOT_HASH={tag}")
            lines.append("CVMFS_AUTO_UPDATE=no")
        else:
            lines.append(f"CVMFS_REPOSITORY_TAG={tag}")
        overrides = "".join(f"{line}\n" for line in lines)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(content)
                f.write(b"\n")
                f.write(overrides.encode())
        except OSError as e:
            raise ConfigGenerationError(repo, f"failed to write config {path} :: {e}") from e

        logger.debug(f"Generated config for {repo_id.volume_name} at {path}")
        return path

    def cleanup(self, repo: str, tag: str) -> None:
        """Remove the cache base of (repo, tag).

        Raises:
            InvalidVolumeNameError: If repo or tag is not a usable path component
            OSError: If the directory exists but cannot be removed
        """
        cache_base = self.cache_base(repo, tag)
        if cache_base.exists():
            shutil.rmtree(cache_base)
            logger.info(f"Removed cache base {cache_base}")
