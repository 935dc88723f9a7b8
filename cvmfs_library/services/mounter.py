"""Mount executors.

The controller never shells out directly; it talks to a Mounter. The real
CvmfsMounter drives the system mount/umount commands, InMemoryMounter keeps
everything in process so controller logic can be exercised without root.
"""

from __future__ import annotations

import ctypes
import logging
import os
import subprocess
from abc import ABC
from abc import abstractmethod
from pathlib import Path

from cvmfs_library.errors import MountExecError
from cvmfs_library.errors import UnmountExecError
from cvmfs_library.models.volumes import RepositoryId

logger = logging.getLogger(__name__)

FUSE_SUPER_MAGIC = 0x65735546


class _Statfs(ctypes.Structure):
    # Only f_type is read; the tail covers the rest of struct statfs on 64-bit Linux.
    _fields_ = [
        ("f_type", ctypes.c_long),
        ("_rest", ctypes.c_byte * 128),
    ]


def filesystem_type(path: str | Path) -> int:
    """Return the statfs(2) filesystem magic number of path.

    Raises:
        OSError: If statfs fails (missing path, permission denied, ...)
    """
    libc = ctypes.CDLL("libc.so.6", use_errno=True)
    buf = _Statfs()
    ret = libc.statfs(os.fsencode(path), ctypes.byref(buf))
    if ret < 0:
        errno = ctypes.get_errno()
        raise OSError(errno, os.strerror(errno), str(path))
    return buf.f_type & 0xFFFFFFFF


def is_fuse_mount(path: str | Path) -> bool:
    return filesystem_type(path) == FUSE_SUPER_MAGIC


class Mounter(ABC):
    """Capability interface for mounting repositories."""

    @abstractmethod
    def is_mounted(self, path: Path) -> bool:
        """Check whether path is an active repository mount.

        Raises:
            OSError: If the path cannot be inspected
        """

    @abstractmethod
    def mount(self, repo_id: RepositoryId, config_path: Path, path: Path) -> None:
        """Mount repo_id at path using config_path.

        Raises:
            MountExecError: If the mount fails
        """

    @abstractmethod
    def unmount(self, path: Path, repo: str = "") -> None:
        """Unmount path.

        Raises:
            UnmountExecError: If the unmount fails
        """

    @abstractmethod
    def bind(self, source: Path, target: Path) -> None:
        """Bind mount source onto target.

        Raises:
            MountExecError: If the bind mount fails
        """


class CvmfsMounter(Mounter):
    """Mounter backed by the system mount/umount commands and the cvmfs fuse helper."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize mounter.

        Args:
            timeout: Seconds to wait for each external command (None waits forever)
        """
        self.timeout = timeout

    def _run(self, cmd: list[str]) -> tuple[int, str]:
        logger.debug(f"Running: {' '.join(cmd)}")
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=self.timeout,
        )
        return result.returncode, result.stdout or ""

    def is_mounted(self, path: Path) -> bool:
        return is_fuse_mount(path)

    def mount(self, repo_id: RepositoryId, config_path: Path, path: Path) -> None:
        repo = repo_id.repository
        cmd = ["mount", "-t", "cvmfs", "-o", f"config={config_path}", repo, str(path)]
        try:
            code, output = self._run(cmd)
        except subprocess.TimeoutExpired as e:
            raise MountExecError(repo, f"failed to mount :: timed out after {e.timeout}s") from e
        except OSError as e:
            raise MountExecError(repo, f"failed to mount :: {e}") from e
        if code != 0:
            raise MountExecError(repo, f"failed to mount :: exit status {code} :: {output}", output=output)

    def unmount(self, path: Path, repo: str = "") -> None:
        try:
            code, output = self._run(["umount", str(path)])
        except subprocess.TimeoutExpired as e:
            raise UnmountExecError(repo, f"failed to unmount :: timed out after {e.timeout}s") from e
        except OSError as e:
            raise UnmountExecError(repo, f"failed to unmount :: {e}") from e
        if code != 0:
            raise UnmountExecError(repo, f"failed to unmount :: exit status {code} :: {output}", output=output)

    def bind(self, source: Path, target: Path) -> None:
        try:
            code, output = self._run(["mount", "--bind", str(source), str(target)])
        except subprocess.TimeoutExpired as e:
            raise MountExecError(str(source), f"bind mount failed :: timed out after {e.timeout}s") from e
        except OSError as e:
            raise MountExecError(str(source), f"bind mount failed :: {e}") from e
        if code != 0:
            raise MountExecError(str(source), f"bind mount failed :: exit status {code} :: {output}", output=output)


class InMemoryMounter(Mounter):
    """Mounter that only records what it was asked to do.

    Set fail_mount / fail_unmount to make the next calls fail with the
    given diagnostic output.
    """

    def __init__(self) -> None:
        self.mounted: set[Path] = set()
        self.mount_calls: list[tuple[RepositoryId, Path, Path]] = []
        self.unmount_calls: list[Path] = []
        self.binds: list[tuple[Path, Path]] = []
        self.fail_mount: str | None = None
        self.fail_unmount: str | None = None

    def is_mounted(self, path: Path) -> bool:
        return Path(path) in self.mounted

    def mount(self, repo_id: RepositoryId, config_path: Path, path: Path) -> None:
        self.mount_calls.append((repo_id, Path(config_path), Path(path)))
        if self.fail_mount is not None:
            raise MountExecError(
                repo_id.repository, f"failed to mount :: {self.fail_mount}", output=self.fail_mount
            )
        self.mounted.add(Path(path))

    def unmount(self, path: Path, repo: str = "") -> None:
        self.unmount_calls.append(Path(path))
        if self.fail_unmount is not None:
            raise UnmountExecError(repo, f"failed to unmount :: {self.fail_unmount}", output=self.fail_unmount)
        if Path(path) not in self.mounted:
            raise UnmountExecError(repo, f"failed to unmount :: {path}: not mounted", output=f"{path}: not mounted")
        self.mounted.discard(Path(path))

    def bind(self, source: Path, target: Path) -> None:
        self.binds.append((Path(source), Path(target)))
