from typing import List, Optional

from fogcontroller.core.common import AppBaseModel


class RouteRequest(AppBaseModel):
    publishing_instance_id: str
    destination_instance_id: str


class RouteEntry(AppBaseModel):
    id: int
    publishing_instance_uuid: str
    destination_instance_uuid: str
    track_id: Optional[int] = None
    is_network_connection: bool = False


class FogRoute(AppBaseModel):
    """Agent view: one publishing container and every container it feeds."""
    container: str
    receivers: List[str]
