from .endpoint import router
from .service import TrackService

__all__ = ["router", "TrackService"]
