"""Kubernetes flexvolume models."""

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class FlexOptions(BaseModel):
    """JSON options passed to the attach/detach commands.

    Kubernetes adds its own kubernetes.io/* keys; they are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    mountpoint: str = Field(default="", description="Pod mount directory")
    repository: str = Field(default="", description="Volume name (repo, repo@tag or repo#hash)")


class FlexStatus(BaseModel):
    """Status line printed on stdout for every flexvolume command."""

    status: str = Field(..., description="Success or Failure")
    device: str | None = Field(default=None, description="Mounted repository path")
    message: str | None = Field(default=None, description="Failure reason")
