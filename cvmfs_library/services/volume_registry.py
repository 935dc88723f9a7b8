"""Reference-counted volume registry.

Maps canonical volume names to their mount path and number of active
consumers, and persists the whole map to a JSON cache file on every
mutation so counts survive daemon restarts.

Contract:
- Inputs: Volume names, mount paths, count deltas
- Outputs: MountRecord snapshots (copies, never the live entries)
- Side Effects: Rewrites the cache file after every mutation
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from cvmfs_library.errors import RegistryIOError
from cvmfs_library.errors import VolumeNotFoundError
from cvmfs_library.models.volumes import MountRecord

logger = logging.getLogger(__name__)


class VolumeRegistry:
    """Thread-safe, file-backed registry of mounted volumes.

    Mutations are applied to a copy of the map, written out, and only then
    swapped in, so memory and the file on disk never disagree after a failed
    write.
    """

    def __init__(self, cache_file: Path) -> None:
        """Load the registry from cache_file.

        A missing file is created empty. An unreadable or corrupt file is
        logged and the registry starts empty.

        Args:
            cache_file: JSON snapshot location (e.g. /cvmfs/docker.cache)
        """
        self.cache_file = Path(cache_file)
        self._lock = threading.Lock()
        self._volumes: dict[str, MountRecord] = self._load()
        logger.info(f"Loaded {len(self._volumes)} volumes from {self.cache_file}")

    def _load(self) -> dict[str, MountRecord]:
        if not self.cache_file.exists():
            try:
                self.cache_file.parent.mkdir(parents=True, exist_ok=True)
                self.cache_file.touch()
            except OSError as e:
                logger.warning(f"Failed to create registry file {self.cache_file}: {e}")
            return {}

        try:
            raw = self.cache_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read registry file {self.cache_file}, ignoring :: {e}")
            return {}

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
            return {
                name: MountRecord.model_validate({**entry, "volume_name": name}) for name, entry in data.items()
            }
        except Exception as e:
            logger.warning(f"Failed to parse registry file {self.cache_file}, ignoring :: {e}")
            return {}

    def _commit(self, volumes: dict[str, MountRecord]) -> None:
        """Write volumes atomically, then make them the live map.

        The live map is left untouched when the write fails. Caller must hold
        the lock.
        """
        data = {name: record.model_dump(by_alias=True) for name, record in volumes.items()}
        temp_path = self.cache_file.with_suffix(".tmp")
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            temp_path.replace(self.cache_file)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise RegistryIOError("", f"failed to write registry {self.cache_file} :: {e}") from e
        self._volumes = volumes

    def create(self, volume_name: str, path: str | Path) -> MountRecord:
        """Register volume_name at path with no consumers, if not yet known.

        Existing records are left untouched. The registry is flushed either way.

        Returns:
            The (possibly pre-existing) record

        Raises:
            RegistryIOError: If the snapshot cannot be written
        """
        with self._lock:
            volumes = dict(self._volumes)
            created = volume_name not in volumes
            if created:
                volumes[volume_name] = MountRecord(volume_name=volume_name, path=str(path), reference_count=0)
            self._commit(volumes)
            if created:
                logger.info(f"Registered {volume_name} at {path}")
            return volumes[volume_name].model_copy()

    def get(self, volume_name: str) -> MountRecord:
        """Look up a volume.

        Raises:
            VolumeNotFoundError: If volume_name is not registered
        """
        with self._lock:
            record = self._volumes.get(volume_name)
            if record is None:
                raise VolumeNotFoundError(volume_name)
            return record.model_copy()

    def list(self) -> list[MountRecord]:
        with self._lock:
            return [record.model_copy() for record in self._volumes.values()]

    def adjust(self, volume_name: str, delta: int) -> MountRecord | None:
        """Add delta to the reference count of volume_name.

        Counts are not clamped at zero. Unknown names leave the map
        unchanged but the registry is still flushed.

        Returns:
            Updated record, or None if volume_name is not registered

        Raises:
            RegistryIOError: If the snapshot cannot be written
        """
        with self._lock:
            volumes = dict(self._volumes)
            record = volumes.get(volume_name)
            if record is not None:
                record = record.model_copy(update={"reference_count": record.reference_count + delta})
                volumes[volume_name] = record
            self._commit(volumes)
            if record is None:
                logger.debug(f"{volume_name} not registered, count unchanged")
                return None
            logger.info(f"{volume_name} had {record.reference_count - delta} mounts, now {record.reference_count}")
            return record.model_copy()

    def remove(self, volume_name: str) -> None:
        """Drop volume_name regardless of its reference count.

        Raises:
            RegistryIOError: If the snapshot cannot be written
        """
        with self._lock:
            volumes = dict(self._volumes)
            removed = volumes.pop(volume_name, None) is not None
            self._commit(volumes)
            if removed:
                logger.info(f"{volume_name} dropped from registry")
