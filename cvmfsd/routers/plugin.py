"""Plugin handshake endpoint."""

import logging

from fastapi import APIRouter

from ..models import ActivateResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["plugin"])


@router.post("/Plugin.Activate", response_model=ActivateResponse)
def activate() -> ActivateResponse:
    """Announce the volume driver interface to the docker daemon."""
    logger.info("Registering with docker")
    return ActivateResponse()
