"""Shared service factories.

The volume driver owns the registry lock and the mount lock, so the daemon
must use exactly one instance: it is built once at startup and stored on
app.state, and endpoints receive it through get_volume_driver.
"""

from pathlib import Path

from fastapi import Request

from cvmfs_library.services.config_generator import ConfigGenerator
from cvmfs_library.services.controller import MountController
from cvmfs_library.services.mounter import CvmfsMounter
from cvmfs_library.services.mounter import Mounter
from cvmfs_library.services.volume_driver import VolumeDriver
from cvmfs_library.services.volume_registry import VolumeRegistry

from .config.models import Config


def build_controller(config: Config, mounter: Mounter | None = None) -> MountController:
    """Build a mount controller from configuration.

    Args:
        config: Daemon configuration
        mounter: Mounter to use (defaults to CvmfsMounter)

    Returns:
        MountController instance
    """
    cvmfs = config.cvmfs
    generator = ConfigGenerator(
        config_dir=Path(cvmfs.config_dir),
        cache_root=Path(cvmfs.cache_root),
        base_configs=cvmfs.base_configs,
        service_uid=cvmfs.service_uid,
    )
    if mounter is None:
        mounter = CvmfsMounter(timeout=cvmfs.mount_timeout)
    return MountController(
        mountpoint=Path(cvmfs.mountpoint),
        config_generator=generator,
        mounter=mounter,
        default_tag=cvmfs.default_tag,
    )


def build_volume_driver(config: Config, mounter: Mounter | None = None) -> VolumeDriver:
    """Build the volume driver, loading the registry from disk.

    Returns:
        VolumeDriver instance
    """
    controller = build_controller(config, mounter=mounter)
    registry = VolumeRegistry(config.cvmfs.registry_path)
    return VolumeDriver(controller=controller, registry=registry)


def get_volume_driver(request: Request) -> VolumeDriver:
    """Get the daemon's volume driver.

    Returns:
        VolumeDriver instance stored on app.state
    """
    return request.app.state.volume_driver
