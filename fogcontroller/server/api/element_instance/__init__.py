from .endpoint import router
from .schema import ElementInstanceEntry
from .service import ElementInstanceService

__all__ = ["router", "ElementInstanceEntry", "ElementInstanceService"]
