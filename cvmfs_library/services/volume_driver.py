"""Volume driver operations.

Protocol-neutral implementation of the container runtime's volume plugin
verbs (Create, Path, Mount, Unmount, Remove, Get, List). Each verb parses
the volume name, then delegates to the MountController for host mounts and
to the VolumeRegistry for bookkeeping.

The HTTP layer in cvmfsd only translates requests and errors; all decisions
are made here.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cvmfs_library.errors import CvmfsError
from cvmfs_library.models.volumes import MountRecord
from cvmfs_library.utils.volume_names import parse_volume_name

from .controller import MountController
from .volume_registry import VolumeRegistry

logger = logging.getLogger(__name__)


class VolumeDriver:
    """Composes mount controller and registry into volume plugin operations."""

    def __init__(self, controller: MountController, registry: VolumeRegistry) -> None:
        self.controller = controller
        self.registry = registry

    def create(self, name: str) -> Path:
        """Make sure the volume is mounted and registered.

        Returns:
            Mount path of the volume

        Raises:
            CvmfsError: If parsing, mounting or persisting fails
        """
        repo_id = parse_volume_name(name)
        logger.info(f"create {name} :: {repo_id.volume_name}")

        volume_path = self.controller.mount_tag(repo_id.repository, repo_id.tag, repo_id.tag_type)
        record = self.registry.create(repo_id.volume_name, volume_path)
        return Path(record.path)

    def path(self, name: str) -> Path:
        """Return the registered mount path.

        Raises:
            VolumeNotFoundError: If the volume was never created
        """
        volume_name = parse_volume_name(name).volume_name
        record = self.registry.get(volume_name)
        logger.debug(f"{volume_name} found at {record.path}")
        return Path(record.path)

    def mount(self, name: str) -> Path:
        """Attach one consumer, mounting on first use.

        Returns:
            Mount path of the volume
        """
        volume_name = parse_volume_name(name).volume_name
        logger.info(f"mount {name} :: {volume_name}")

        self.create(name)
        record = self.registry.adjust(volume_name, 1)
        if record is None:
            return self.path(name)
        return Path(record.path)

    def unmount(self, name: str) -> None:
        """Detach one consumer. The host mount stays in place."""
        volume_name = parse_volume_name(name).volume_name
        logger.info(f"unmount {name} :: {volume_name}")
        self.registry.adjust(volume_name, -1)

    def remove(self, name: str) -> None:
        """Unmount the volume and forget it, whatever its reference count.

        A failing unmount is logged and does not prevent the registry entry
        from being dropped.

        Raises:
            RegistryIOError: If the registry cannot be persisted
        """
        repo_id = parse_volume_name(name)
        logger.info(f"remove {name} :: {repo_id.volume_name}")

        try:
            self.controller.umount_tag(repo_id.repository, repo_id.tag)
        except CvmfsError as e:
            logger.error(f"Failed to unmount :: {e}")

        self.registry.remove(repo_id.volume_name)

    def get(self, name: str) -> MountRecord:
        """Return the registry record of a volume.

        Raises:
            VolumeNotFoundError: If the volume was never created
        """
        volume_name = parse_volume_name(name).volume_name
        return self.registry.get(volume_name)

    def list(self) -> list[MountRecord]:
        return self.registry.list()
