"""API routers for cvmfsd.

This module contains FastAPI routers for the docker plugin endpoints.
"""

from .plugin import router as plugin_router
from .volumes import router as volumes_router

__all__ = [
    "plugin_router",
    "volumes_router",
]
