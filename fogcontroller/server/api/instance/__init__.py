from .endpoint import router
from .service import InstanceService

__all__ = ["router", "InstanceService"]
