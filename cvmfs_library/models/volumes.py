"""Volume models shared by the controller, registry and driver."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import Field

from cvmfs_library.models.base import CamelCaseModel

DEFAULT_TAG = "trunk"


class TagType(str, Enum):
    """Kind of repository tag.

    - HASH: pinned root hash, the mount never auto-updates
    - TAG: mutable named tag (trunk, prod, ...)
    """

    HASH = "hash"
    TAG = "tag"


@dataclass(frozen=True)
class RepositoryId:
    """Identity of a mountable repository revision.

    Attributes:
        repository: Repository name (e.g. alice.cern.ch)
        tag: Root hash or tag name, depending on tag_type
        tag_type: Whether tag is a pinned hash or a mutable tag
    """

    repository: str
    tag: str = DEFAULT_TAG
    tag_type: TagType = TagType.TAG

    @property
    def volume_name(self) -> str:
        """Canonical external volume name (repo#hash or repo@tag)."""
        separator = "#" if self.tag_type == TagType.HASH else "@"
        return f"{self.repository}{separator}{self.tag}"


class MountRecord(CamelCaseModel):
    """Registry entry for one logical volume.

    Persisted as {"path": ..., "referenceCount": ...} keyed by volume name.
    """

    volume_name: str = Field(exclude=True, description="Canonical volume name")
    path: str = Field(description="Host path where the repository is mounted")
    reference_count: int = Field(default=0, description="Number of active consumers")
