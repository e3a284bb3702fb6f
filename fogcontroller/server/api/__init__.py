"""
Fog controller API routers.

Everything is mounted under `/api/v2`; agents and authoring clients share the
same envelope and error handling.
"""

from fastapi import APIRouter

# fog first: the auth dependencies import it
from . import fog
from . import catalog, element_instance, instance, provision, routing, track, viewer

API_PREFIX = "/api/v2"

router = APIRouter(prefix=API_PREFIX)

router.include_router(catalog.router)
router.include_router(element_instance.router)
router.include_router(fog.router)
router.include_router(instance.router)
router.include_router(routing.router)
router.include_router(provision.router)
router.include_router(track.router)
router.include_router(viewer.router)

__all__ = [
    "router", "API_PREFIX",
    "catalog", "element_instance", "fog", "instance",
    "provision", "routing", "track", "viewer",
]
