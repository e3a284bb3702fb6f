from .endpoint import router
from .service import ProvisionService

__all__ = ["router", "ProvisionService"]
