"""Main FastAPI application for cvmfsd.

This module creates the FastAPI application that speaks the docker volume
plugin protocol. The docker daemon reaches it over a unix socket (see
cvmfsd.cli), posting JSON to /Plugin.Activate and /VolumeDriver.*.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse

from cvmfs_library.errors import CvmfsError
from cvmfs_library.services.volume_driver import VolumeDriver

from .config.loader import load_config
from .config.models import Config
from .dependencies import build_volume_driver
from .routers import plugin_router
from .routers import volumes_router

logger = logging.getLogger(__name__)

PLUGIN_CONTENT_TYPE = "application/vnd.docker.plugins.v1.2+json"


def create_app(config: Config | None = None, driver: VolumeDriver | None = None) -> FastAPI:
    """Create the plugin application.

    Args:
        config: Daemon configuration (loaded from the usual places if None)
        driver: Volume driver to serve (built from config at startup if None)

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the volume driver on startup unless one was injected."""
        if getattr(app.state, "volume_driver", None) is None:
            daemon_config = config or load_config()
            logger.info(f"Initializing driver :: mount point: {daemon_config.cvmfs.mountpoint}")
            app.state.volume_driver = build_volume_driver(daemon_config)

        yield

        logger.info("Shutting down cvmfs volume plugin")

    app = FastAPI(
        title="docker-volume-cvmfs",
        description="Docker volume plugin for CVMFS repositories",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.volume_driver = driver

    @app.exception_handler(CvmfsError)
    async def cvmfs_error_handler(request: Request, exc: CvmfsError) -> JSONResponse:
        logger.error(f"{request.url.path} failed :: {exc}")
        return JSONResponse(
            status_code=500,
            content={"Err": str(exc)},
            media_type=PLUGIN_CONTENT_TYPE,
        )

    app.include_router(plugin_router)
    app.include_router(volumes_router)

    return app
