"""Docker volume plugin protocol models.

Request and response bodies of the /Plugin.* and /VolumeDriver.* endpoints.
Field names follow the protocol's PascalCase keys on the wire.
"""

from pydantic import Field

from cvmfsd.models.base import PascalCaseModel


class VolumeRequest(PascalCaseModel):
    """Body sent by the docker daemon for per-volume calls.

    Attributes:
        name: Volume name (repo, repo@tag or repo#hash)
        opts: Driver options given at volume creation (unused)
        id: Caller identifier for Mount/Unmount
    """

    name: str = Field(..., description="Volume name")
    opts: dict[str, str] | None = Field(default=None, description="Driver options")
    id: str | None = Field(default=None, alias="ID", description="Mount caller identifier")


class VolumeInfo(PascalCaseModel):
    """A volume as reported by Get and List."""

    name: str = Field(..., description="Canonical volume name")
    mountpoint: str = Field(..., description="Host path of the volume")


class ErrResponse(PascalCaseModel):
    """Response carrying only the error string (empty on success)."""

    err: str = Field(default="", description="Error message, empty on success")


class MountpointResponse(ErrResponse):
    """Response for Mount and Path."""

    mountpoint: str | None = Field(default=None, description="Host path of the volume")


class GetResponse(ErrResponse):
    """Response for Get."""

    volume: VolumeInfo | None = Field(default=None, description="Requested volume")


class ListResponse(ErrResponse):
    """Response for List."""

    volumes: list[VolumeInfo] = Field(default_factory=list, description="All known volumes")


class Capabilities(PascalCaseModel):
    """Driver capabilities."""

    scope: str = Field(default="local", description="Volume scope (local or global)")


class CapabilitiesResponse(PascalCaseModel):
    """Response for Capabilities."""

    capabilities: Capabilities = Field(default_factory=Capabilities)


class ActivateResponse(PascalCaseModel):
    """Response for Plugin.Activate."""

    implements: list[str] = Field(default_factory=lambda: ["VolumeDriver"])
