"""Repository mount controller.

Decides whether a repository revision needs mounting and performs the
mount/unmount through a Mounter. Mounting is idempotent: the mounter is
asked whether the target path is already a live mount before anything is
executed, so a restarted daemon with an empty registry does not double
mount.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from cvmfs_library.errors import ConfigGenerationError
from cvmfs_library.errors import MountExecError
from cvmfs_library.errors import MountPathError
from cvmfs_library.errors import RepoNotFoundError
from cvmfs_library.models.volumes import DEFAULT_TAG
from cvmfs_library.models.volumes import RepositoryId
from cvmfs_library.models.volumes import TagType
from cvmfs_library.utils.volume_names import check_path_component

from .config_generator import ConfigGenerator
from .mounter import Mounter

logger = logging.getLogger(__name__)


class MountController:
    """Mounts and unmounts repositories below a single mountpoint.

    All mount and unmount decisions on the host go through one lock; mounts
    are rare and must not race on config and cache directory creation.
    """

    def __init__(
        self,
        mountpoint: Path,
        config_generator: ConfigGenerator,
        mounter: Mounter,
        default_tag: str = DEFAULT_TAG,
    ) -> None:
        """Initialize controller.

        Args:
            mountpoint: Root directory holding <repo>/<tag> mounts
            config_generator: Builds per-mount config artifacts
            mounter: Executes mount/unmount
            default_tag: Tag used by mount()/umount() when none is given
        """
        self.mountpoint = Path(mountpoint)
        self.config_generator = config_generator
        self.mounter = mounter
        self.default_tag = default_tag
        self._lock = threading.Lock()

    def volume_path(self, repo: str, tag: str) -> Path:
        return self.mountpoint / repo / tag

    def _checked_path(self, repo: str, tag: str) -> Path:
        check_path_component(repo, "repository", repo)
        check_path_component(repo, "tag", tag)
        volume_path = self.volume_path(repo, tag)
        if not Path(os.path.normpath(volume_path)).is_relative_to(os.path.normpath(self.mountpoint)):
            raise MountPathError(repo, f"{volume_path} is outside {self.mountpoint}")
        return volume_path

    def mount(self, repo: str) -> Path:
        """Mount repo at the default tag."""
        return self.mount_tag(repo, self.default_tag, TagType.TAG)

    def mount_tag(self, repo: str, tag: str, tag_type: TagType) -> Path:
        """Mount repo at tag, unless it is already mounted.

        Args:
            repo: Repository name
            tag: Root hash (TagType.HASH) or tag name (TagType.TAG)
            tag_type: Kind of tag

        Returns:
            Path where the repository is mounted

        Raises:
            RepoNotFoundError: If repo is empty
            InvalidVolumeNameError: If repo or tag is not a usable path component
            ConfigGenerationError: If the config artifact cannot be built
            MountPathError: If the mount directory cannot be created or checked
            MountExecError: If the mount command fails (cache base is removed)
        """
        if not repo:
            raise RepoNotFoundError()

        volume_path = self._checked_path(repo, tag)
        repo_id = RepositoryId(repository=repo, tag=tag, tag_type=tag_type)

        with self._lock:

            try:
                config_path = self.config_generator.generate(repo_id)
            except ConfigGenerationError as e:
                raise ConfigGenerationError(repo, f"failed to generate config :: {repo}/{tag} :: {e.msg}") from e

            try:
                volume_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise MountPathError(repo, f"failed to create directory :: {volume_path} :: {e}") from e

            try:
                mounted = self.mounter.is_mounted(volume_path)
            except OSError as e:
                raise MountPathError(repo, f"failed to check mount dir :: {e}") from e

            if mounted:
                logger.debug(f"{repo_id.volume_name} already mounted at {volume_path}")
                return volume_path

            logger.info(f"Mounting {repo} in {volume_path}")
            try:
                self.mounter.mount(repo_id, config_path, volume_path)
            except MountExecError:
                self._cleanup(repo, tag)
                raise

        return volume_path

    def umount(self, repo: str) -> Path:
        """Unmount repo at the default tag."""
        return self.umount_tag(repo, self.default_tag)

    def umount_tag(self, repo: str, tag: str) -> Path:
        """Unmount repo at tag.

        The unmount command is issued even when the path is not a live
        mount, so unmounting an unmounted path fails with UnmountExecError.
        Reference counts are not consulted here.

        Returns:
            Path that was unmounted

        Raises:
            RepoNotFoundError: If repo is empty
            InvalidVolumeNameError: If repo or tag is not a usable path component
            MountPathError: If the mount directory cannot be checked
            UnmountExecError: If the unmount command fails
        """
        if not repo:
            raise RepoNotFoundError()

        volume_path = self._checked_path(repo, tag)

        with self._lock:

            try:
                mounted = self.mounter.is_mounted(volume_path)
            except OSError as e:
                raise MountPathError(repo, f"failed to check unmount dir :: {volume_path} :: {e}") from e

            if not mounted:
                logger.warning(f"{volume_path} does not look like a mount, unmounting anyway")

            logger.info(f"Unmounting {volume_path}")
            self.mounter.unmount(volume_path, repo=repo)

        return volume_path

    def _cleanup(self, repo: str, tag: str) -> None:
        try:
            self.config_generator.cleanup(repo, tag)
        except OSError as e:
            logger.warning(f"Failed to clean up cache for {repo}/{tag}: {e}")
