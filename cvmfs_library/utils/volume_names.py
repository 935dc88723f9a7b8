"""Volume name parsing.

Docker and flexvolume requests name volumes with a compact string that
encodes repository, tag and tag kind:

- repo#hash  -> pinned root hash
- repo@tag   -> mutable tag
- repo       -> repo@trunk
"""

from __future__ import annotations

from cvmfs_library.errors import InvalidVolumeNameError
from cvmfs_library.errors import RepoNotFoundError
from cvmfs_library.models.volumes import DEFAULT_TAG
from cvmfs_library.models.volumes import RepositoryId
from cvmfs_library.models.volumes import TagType


def parse_volume_name(name: str) -> RepositoryId:
    """Parse a volume name into its repository identifier.

    A '#' separator takes precedence over '@', and only the first
    occurrence splits, so tags may themselves contain the other separator.

    Args:
        name: Volume name as sent by the container runtime

    Returns:
        RepositoryId; its volume_name is the canonical form of name

    Raises:
        RepoNotFoundError: If name (or its repository part) is empty
        InvalidVolumeNameError: If the repository or tag is not a usable
            path component

    Examples:
        >>> parse_volume_name("alice.cern.ch@prod")
        RepositoryId(repository='alice.cern.ch', tag='prod', tag_type=<TagType.TAG: 'tag'>)

        >>> parse_volume_name("alice.cern.ch").volume_name
        'alice.cern.ch@trunk'
    """
    if "#" in name:
        repository, tag = name.split("#", 1)
        tag_type = TagType.HASH
    elif "@" in name:
        repository, tag = name.split("@", 1)
        tag_type = TagType.TAG
    else:
        repository, tag = name, DEFAULT_TAG
        tag_type = TagType.TAG

    if not repository:
        raise RepoNotFoundError()

    check_path_component(repository, "repository", repository)
    check_path_component(repository, "tag", tag)

    return RepositoryId(repository=repository, tag=tag, tag_type=tag_type)


def check_path_component(repo: str, kind: str, value: str) -> None:
    """Reject values that would escape or collapse a <root>/<repo>/<tag> path.

    Raises:
        InvalidVolumeNameError: If value is empty, '.', '..', or contains
            '/' or a NUL byte
    """
    if value in ("", ".", "..") or "/" in value or "\0" in value:
        raise InvalidVolumeNameError(repo, f"invalid {kind} {value!r}")
