"""
Shared pytest fixtures for the cvmfs test suite.

Provides fixtures for:
- Temporary host layouts (base configs, config dir, cache root, mountpoint)
- An in-memory mounter standing in for mount/umount
- Controller, registry and volume driver wired to the temporary layout
- Daemon configuration pointing at the temporary layout
"""

from pathlib import Path

import pytest

from cvmfs_library.services.config_generator import ConfigGenerator
from cvmfs_library.services.controller import MountController
from cvmfs_library.services.mounter import InMemoryMounter
from cvmfs_library.services.volume_driver import VolumeDriver
from cvmfs_library.services.volume_registry import VolumeRegistry
from cvmfsd.config.models import Config


@pytest.fixture
def base_configs(tmp_path: Path) -> list[Path]:
    """Create two base client configs, mimicking /etc/cvmfs/default.*.

    Example:
        >>> def test_base(base_configs):
        ...     assert base_configs[0].read_text().startswith("CVMFS_HTTP_PROXY")
    """
    etc = tmp_path / "base"
    etc.mkdir()
    default_conf = etc / "default.conf"
    default_conf.write_text("CVMFS_HTTP_PROXY=DIRECT\n")
    domain_conf = etc / "cern.ch.conf"
    domain_conf.write_text("CVMFS_SERVER_URL=http://cvmfs-stratum-one.cern.ch/cvmfs/@fqrn@\n")
    return [default_conf, domain_conf]


@pytest.fixture
def config_generator(tmp_path: Path, base_configs: list[Path]) -> ConfigGenerator:
    """Config generator writing below tmp_path, without chown."""
    return ConfigGenerator(
        config_dir=tmp_path / "etc-cvmfs",
        cache_root=tmp_path / "cache",
        base_configs=base_configs,
        service_uid=None,
    )


@pytest.fixture
def mounter() -> InMemoryMounter:
    """Mounter that records calls instead of running mount(8)."""
    return InMemoryMounter()


@pytest.fixture
def controller(tmp_path: Path, config_generator: ConfigGenerator, mounter: InMemoryMounter) -> MountController:
    """Mount controller rooted at tmp_path/cvmfs."""
    return MountController(
        mountpoint=tmp_path / "cvmfs",
        config_generator=config_generator,
        mounter=mounter,
    )


@pytest.fixture
def registry_file(tmp_path: Path) -> Path:
    return tmp_path / "cvmfs" / "docker.cache"


@pytest.fixture
def registry(registry_file: Path) -> VolumeRegistry:
    """Registry persisted to tmp_path/cvmfs/docker.cache."""
    return VolumeRegistry(registry_file)


@pytest.fixture
def driver(controller: MountController, registry: VolumeRegistry) -> VolumeDriver:
    """Volume driver wired to the in-memory mounter."""
    return VolumeDriver(controller=controller, registry=registry)


@pytest.fixture
def daemon_config(tmp_path: Path, base_configs: list[Path]) -> Config:
    """Daemon configuration pointing every path at tmp_path."""
    config = Config.get_default()
    config.daemon.socket = str(tmp_path / "run" / "cvmfs.sock")
    config.cvmfs.mountpoint = str(tmp_path / "cvmfs")
    config.cvmfs.config_dir = str(tmp_path / "etc-cvmfs")
    config.cvmfs.cache_root = str(tmp_path / "cache")
    config.cvmfs.base_configs = [str(p) for p in base_configs]
    config.cvmfs.service_uid = None
    return config
