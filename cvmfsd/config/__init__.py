"""Configuration for cvmfsd."""

from .loader import find_config_path
from .loader import load_config
from .loader import save_example_config
from .models import Config
from .models import CvmfsConfig
from .models import DaemonConfig

__all__ = [
    "Config",
    "CvmfsConfig",
    "DaemonConfig",
    "find_config_path",
    "load_config",
    "save_example_config",
]
