from .service import ConfigService, CONFIG_KEYS

__all__ = ["ConfigService", "CONFIG_KEYS"]
