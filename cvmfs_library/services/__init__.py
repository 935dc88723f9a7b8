"""Services for mounting repositories and tracking volumes."""

from .config_generator import ConfigGenerator
from .controller import MountController
from .mounter import CvmfsMounter
from .mounter import InMemoryMounter
from .mounter import Mounter
from .volume_driver import VolumeDriver
from .volume_registry import VolumeRegistry

__all__ = [
    "ConfigGenerator",
    "CvmfsMounter",
    "InMemoryMounter",
    "MountController",
    "Mounter",
    "VolumeDriver",
    "VolumeRegistry",
]
