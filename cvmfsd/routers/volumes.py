"""Thin HTTP wrapper around cvmfs_library.services.VolumeDriver.

Architecture: This router contains ONLY HTTP handling.
All business logic is in cvmfs_library. Errors raised by the driver are
turned into {"Err": ...} responses by the handler registered in main.

Endpoints are plain functions so blocking mount calls run in the
threadpool instead of the event loop.
"""

import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends

from cvmfs_library.services.volume_driver import VolumeDriver

from ..dependencies import get_volume_driver
from ..models import CapabilitiesResponse
from ..models import ErrResponse
from ..models import GetResponse
from ..models import ListResponse
from ..models import MountpointResponse
from ..models import VolumeInfo
from ..models import VolumeRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["volumes"])

Driver = Annotated[VolumeDriver, Depends(get_volume_driver)]


@router.post("/VolumeDriver.Create", response_model=ErrResponse)
def create_volume(request: VolumeRequest, driver: Driver) -> ErrResponse:
    """Mount the repository (if needed) and register the volume."""
    driver.create(request.name)
    return ErrResponse()


@router.post("/VolumeDriver.Remove", response_model=ErrResponse)
def remove_volume(request: VolumeRequest, driver: Driver) -> ErrResponse:
    """Unmount the repository and drop the volume."""
    driver.remove(request.name)
    return ErrResponse()


@router.post("/VolumeDriver.Mount", response_model=MountpointResponse, response_model_exclude_none=True)
def mount_volume(request: VolumeRequest, driver: Driver) -> MountpointResponse:
    """Attach a container to the volume."""
    path = driver.mount(request.name)
    return MountpointResponse(mountpoint=str(path))


@router.post("/VolumeDriver.Unmount", response_model=ErrResponse)
def unmount_volume(request: VolumeRequest, driver: Driver) -> ErrResponse:
    """Detach a container from the volume."""
    driver.unmount(request.name)
    return ErrResponse()


@router.post("/VolumeDriver.Path", response_model=MountpointResponse, response_model_exclude_none=True)
def volume_path(request: VolumeRequest, driver: Driver) -> MountpointResponse:
    """Report where the volume is mounted."""
    return MountpointResponse(mountpoint=str(driver.path(request.name)))


@router.post("/VolumeDriver.Get", response_model=GetResponse, response_model_exclude_none=True)
def get_volume(request: VolumeRequest, driver: Driver) -> GetResponse:
    """Describe one volume."""
    record = driver.get(request.name)
    return GetResponse(volume=VolumeInfo(name=record.volume_name, mountpoint=record.path))


@router.post("/VolumeDriver.List", response_model=ListResponse)
def list_volumes(driver: Driver) -> ListResponse:
    """Describe all volumes."""
    volumes = [VolumeInfo(name=record.volume_name, mountpoint=record.path) for record in driver.list()]
    return ListResponse(volumes=volumes)


@router.post("/VolumeDriver.Capabilities", response_model=CapabilitiesResponse)
def capabilities() -> CapabilitiesResponse:
    """Volumes are host local."""
    return CapabilitiesResponse()
