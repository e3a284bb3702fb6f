from .schema import RegistryEntry, RegistryPayload
from .service import RegistryService

__all__ = ["RegistryEntry", "RegistryPayload", "RegistryService"]
