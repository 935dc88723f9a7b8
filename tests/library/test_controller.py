"""
Unit tests for the repository mount controller.

Uses InMemoryMounter so no root privileges or cvmfs client are needed.
"""

from pathlib import Path

import pytest

from cvmfs_library.errors import ConfigGenerationError
from cvmfs_library.errors import InvalidVolumeNameError
from cvmfs_library.errors import MountExecError
from cvmfs_library.errors import MountPathError
from cvmfs_library.errors import RepoNotFoundError
from cvmfs_library.errors import UnmountExecError
from cvmfs_library.models.volumes import TagType
from cvmfs_library.services.config_generator import ConfigGenerator
from cvmfs_library.services.controller import MountController
from cvmfs_library.services.mounter import InMemoryMounter


@pytest.mark.unit
class TestMountTag:
    """Test MountController.mount_tag."""

    def test_mount_returns_volume_path(
        self, controller: MountController, mounter: InMemoryMounter, tmp_path: Path
    ) -> None:
        """Test mounting places the repository at <mountpoint>/<repo>/<tag>."""
        path = controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert path == tmp_path / "cvmfs" / "alice.cern.ch" / "prod"
        assert path.is_dir()
        assert mounter.is_mounted(path)

    def test_mount_passes_generated_config(self, controller: MountController, mounter: InMemoryMounter) -> None:
        """Test the mounter receives the freshly generated config artifact."""
        controller.mount_tag("alice.cern.ch", "abcd1234", TagType.HASH)

        repo_id, config_path, _ = mounter.mount_calls[0]
        assert repo_id.tag_type == TagType.HASH
        assert config_path.name == "alice.cern.ch-abcd1234"
        assert "CVMFS_ROOT_HASH=abcd1234" in config_path.read_text()

    def test_mount_is_idempotent(self, controller: MountController, mounter: InMemoryMounter) -> None:
        """Test a second mount of the same revision short-circuits."""
        first = controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)
        second = controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert first == second
        assert len(mounter.mount_calls) == 1

    def test_config_regenerated_even_when_mounted(
        self, controller: MountController, mounter: InMemoryMounter, base_configs: list[Path]
    ) -> None:
        """Test config generation happens on every call, mount only once."""
        controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)
        config_path = mounter.mount_calls[0][1]
        base_configs[0].write_text("CVMFS_HTTP_PROXY=http://squid:3128\n")

        controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert "squid:3128" in config_path.read_text()
        assert len(mounter.mount_calls) == 1

    def test_mount_uses_default_trunk_tag(self, controller: MountController, mounter: InMemoryMounter) -> None:
        """Test mount(repo) mounts the trunk tag as a mutable tag."""
        path = controller.mount("alice.cern.ch")

        assert path.name == "trunk"
        repo_id = mounter.mount_calls[0][0]
        assert repo_id.tag == "trunk"
        assert repo_id.tag_type == TagType.TAG

    def test_mount_failure_cleans_cache(
        self, controller: MountController, mounter: InMemoryMounter, tmp_path: Path
    ) -> None:
        """Test a failed mount leaves no cache directory and names the repository."""
        mounter.fail_mount = "Failed to initialize root file catalog"

        with pytest.raises(MountExecError) as exc_info:
            controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert exc_info.value.repo == "alice.cern.ch"
        assert "alice.cern.ch" in str(exc_info.value)
        assert not (tmp_path / "cache" / "alice.cern.ch" / "prod").exists()

    def test_mount_failure_keeps_other_caches(
        self, controller: MountController, mounter: InMemoryMounter, tmp_path: Path
    ) -> None:
        """Test cleanup is scoped to the failing (repository, tag)."""
        controller.mount_tag("alice.cern.ch", "trunk", TagType.TAG)
        mounter.fail_mount = "boom"

        with pytest.raises(MountExecError):
            controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert (tmp_path / "cache" / "alice.cern.ch" / "trunk").is_dir()

    def test_cleanup_failure_does_not_mask_mount_error(
        self, controller: MountController, mounter: InMemoryMounter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the MountExecError survives a failing cleanup."""
        mounter.fail_mount = "boom"

        def broken_cleanup(repo: str, tag: str) -> None:
            raise PermissionError("read-only file system")

        monkeypatch.setattr(controller.config_generator, "cleanup", broken_cleanup)

        with pytest.raises(MountExecError, match="boom"):
            controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

    def test_config_failure_aborts_before_mount(self, tmp_path: Path, mounter: InMemoryMounter) -> None:
        """Test a config generation failure never reaches the mounter."""
        generator = ConfigGenerator(
            config_dir=tmp_path / "etc-cvmfs",
            cache_root=tmp_path / "cache",
            base_configs=[tmp_path / "missing.conf"],
            service_uid=None,
        )
        controller = MountController(tmp_path / "cvmfs", generator, mounter)

        with pytest.raises(ConfigGenerationError, match="failed to generate config"):
            controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert mounter.mount_calls == []

    def test_mount_dir_blocked_by_file(
        self, controller: MountController, mounter: InMemoryMounter, tmp_path: Path
    ) -> None:
        """Test a regular file at the mount path raises MountPathError."""
        repo_dir = tmp_path / "cvmfs" / "alice.cern.ch"
        repo_dir.mkdir(parents=True)
        (repo_dir / "prod").write_text("")

        with pytest.raises(MountPathError, match="failed to create directory"):
            controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert mounter.mount_calls == []

    def test_empty_repository_raises(self, controller: MountController) -> None:
        with pytest.raises(RepoNotFoundError):
            controller.mount_tag("", "prod", TagType.TAG)

    @pytest.mark.parametrize(
        ("repo", "tag"),
        [("alice.cern.ch", ".."), ("alice.cern.ch", ""), ("..", ".."), ("alice.cern.ch", "../../etc")],
    )
    def test_unusable_path_components_rejected_before_any_io(
        self, controller: MountController, mounter: InMemoryMounter, tmp_path: Path, repo: str, tag: str
    ) -> None:
        """Test a tag or repository that escapes the mount layout touches nothing."""
        with pytest.raises(InvalidVolumeNameError):
            controller.mount_tag(repo, tag, TagType.TAG)

        assert mounter.mount_calls == []
        assert not (tmp_path / "etc-cvmfs").exists()
        assert not (tmp_path / "cache").exists()

    def test_failed_mount_with_dotdot_tag_keeps_other_caches(
        self, controller: MountController, mounter: InMemoryMounter, tmp_path: Path
    ) -> None:
        """Test a failing mount of a '..' tag cannot wipe sibling caches."""
        controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)
        mounter.fail_mount = "boom"

        with pytest.raises(InvalidVolumeNameError):
            controller.mount_tag("alice.cern.ch", "..", TagType.TAG)

        assert (tmp_path / "cache" / "alice.cern.ch" / "prod" / "shared").is_dir()


@pytest.mark.unit
class TestUmountTag:
    """Test MountController.umount_tag."""

    def test_umount_mounted_repository(self, controller: MountController, mounter: InMemoryMounter) -> None:
        path = controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        result = controller.umount_tag("alice.cern.ch", "prod")

        assert result == path
        assert not mounter.is_mounted(path)

    def test_umount_default_tag(self, controller: MountController, mounter: InMemoryMounter) -> None:
        path = controller.mount("alice.cern.ch")

        controller.umount("alice.cern.ch")

        assert mounter.unmount_calls == [path]

    def test_umount_unmounted_path_is_attempted_and_fails(
        self, controller: MountController, mounter: InMemoryMounter, tmp_path: Path
    ) -> None:
        """Test unmounting an unmounted path still calls umount and surfaces its failure."""
        path = tmp_path / "cvmfs" / "alice.cern.ch" / "prod"
        path.mkdir(parents=True)

        with pytest.raises(UnmountExecError) as exc_info:
            controller.umount_tag("alice.cern.ch", "prod")

        assert mounter.unmount_calls == [path]
        assert exc_info.value.repo == "alice.cern.ch"

    def test_umount_keeps_cache(self, controller: MountController, tmp_path: Path) -> None:
        """Test the cache base survives a successful unmount."""
        controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        controller.umount_tag("alice.cern.ch", "prod")

        assert (tmp_path / "cache" / "alice.cern.ch" / "prod" / "shared").is_dir()

    def test_remount_after_umount(self, controller: MountController, mounter: InMemoryMounter) -> None:
        """Test UNMOUNTED -> MOUNTED -> UNMOUNTED -> MOUNTED."""
        controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)
        controller.umount_tag("alice.cern.ch", "prod")
        controller.mount_tag("alice.cern.ch", "prod", TagType.TAG)

        assert len(mounter.mount_calls) == 2

    def test_umount_rejects_dotdot_tag(self, controller: MountController, mounter: InMemoryMounter) -> None:
        """Test an unmount can never target the mountpoint root."""
        with pytest.raises(InvalidVolumeNameError):
            controller.umount_tag("alice.cern.ch", "..")

        assert mounter.unmount_calls == []

    def test_umount_check_failure_raises_path_error(self, controller: MountController) -> None:
        """Test a mount check failure on unmount is reported as MountPathError."""

        def failing_check(path: Path) -> bool:
            raise FileNotFoundError(2, "No such file or directory", str(path))

        controller.mounter.is_mounted = failing_check  # type: ignore[method-assign]

        with pytest.raises(MountPathError, match="failed to check unmount dir"):
            controller.umount_tag("alice.cern.ch", "prod")
