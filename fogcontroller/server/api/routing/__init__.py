from .endpoint import router
from .schema import FogRoute, RouteEntry, RouteRequest
from .service import RoutingService

__all__ = ["router", "FogRoute", "RouteEntry", "RouteRequest", "RoutingService"]
