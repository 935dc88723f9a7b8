"""API models for cvmfsd.

This module defines request and response models for the docker volume
plugin protocol and the status lines of the flexvolume commands.
"""

from .flex import FlexOptions
from .flex import FlexStatus
from .plugin import ActivateResponse
from .plugin import Capabilities
from .plugin import CapabilitiesResponse
from .plugin import ErrResponse
from .plugin import GetResponse
from .plugin import ListResponse
from .plugin import MountpointResponse
from .plugin import VolumeInfo
from .plugin import VolumeRequest

__all__ = [
    "ActivateResponse",
    "Capabilities",
    "CapabilitiesResponse",
    "ErrResponse",
    "FlexOptions",
    "FlexStatus",
    "GetResponse",
    "ListResponse",
    "MountpointResponse",
    "VolumeInfo",
    "VolumeRequest",
]
