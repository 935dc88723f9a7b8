"""Error types raised by the cvmfs library layer.

Every failure in the core is raised as a subclass of CvmfsError so the
adapters (HTTP plugin, flexvolume CLI) can translate all of them at a single
boundary.
"""


class CvmfsError(Exception):
    """Base error carrying the repository it relates to.

    Attributes:
        repo: Repository name (may be empty when unknown)
        msg: Human-readable description
    """

    def __init__(self, repo: str, msg: str) -> None:
        self.repo = repo
        self.msg = msg
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"repository '{self.repo}': {self.msg}"


class RepoNotFoundError(CvmfsError):
    """Raised when no repository was given where one is required."""

    def __init__(self, repo: str = "") -> None:
        super().__init__(repo, "no repository given" if not repo else "repository not found")

    def __str__(self) -> str:
        if not self.repo:
            return "no repository given"
        return f"repository '{self.repo}' not found"


class InvalidVolumeNameError(CvmfsError):
    """Raised when a repository or tag cannot be used as a path component."""


class ConfigGenerationError(CvmfsError):
    """Raised when the per-mount config artifact cannot be built."""


class MountPathError(CvmfsError):
    """Raised when the mount directory cannot be created or inspected."""


class MountExecError(CvmfsError):
    """Raised when the external mount command fails.

    Attributes:
        output: Combined stdout/stderr of the failed command
    """

    def __init__(self, repo: str, msg: str, output: str = "") -> None:
        self.output = output
        super().__init__(repo, msg)


class UnmountExecError(MountExecError):
    """Raised when the external unmount command fails."""


class RegistryIOError(CvmfsError):
    """Raised when the volume registry snapshot cannot be written."""


class VolumeNotFoundError(CvmfsError):
    """Raised when a volume name is not present in the registry."""

    def __init__(self, volume_name: str) -> None:
        self.volume_name = volume_name
        super().__init__(volume_name, "volume not found")

    def __str__(self) -> str:
        return f"volume {self.volume_name} does not exist"
