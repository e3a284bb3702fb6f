from .endpoint import router
from .schema import FogConfig, FogEntry, FogStatus, FogType
from .service import FogService

__all__ = ["router", "FogConfig", "FogEntry", "FogStatus", "FogType", "FogService"]
