"""CVMFS library layer.

This is the business logic layer that sits between cvmfsd (transport:
docker volume plugin socket and flexvolume CLI) and the host's cvmfs
client (mount -t cvmfs).

Public Interface:
    Modules:
    - errors: Error taxonomy
    - models: Repository identifiers and registry records
    - services: Config generation, mounting, registry, volume driver
    - utils: Volume name parsing
"""

from .errors import CvmfsError
from .models import MountRecord
from .models import RepositoryId
from .models import TagType
from .utils import parse_volume_name

__all__ = [
    "CvmfsError",
    "MountRecord",
    "RepositoryId",
    "TagType",
    "parse_volume_name",
]
