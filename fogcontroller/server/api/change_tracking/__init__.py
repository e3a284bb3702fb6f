from .service import ChangeTrackingService, TRACKED_COLUMNS

__all__ = ["ChangeTrackingService", "TRACKED_COLUMNS"]
