"""Models for cvmfs library."""

from .volumes import DEFAULT_TAG
from .volumes import MountRecord
from .volumes import RepositoryId
from .volumes import TagType

__all__ = [
    "DEFAULT_TAG",
    "MountRecord",
    "RepositoryId",
    "TagType",
]
