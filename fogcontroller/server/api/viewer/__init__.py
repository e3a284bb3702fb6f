from .endpoint import router
from .service import ViewerService

__all__ = ["router", "ViewerService"]
