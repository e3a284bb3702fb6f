from typing import List, Optional

from fogcontroller.core.common import AppBaseModel


class PortMapping(AppBaseModel):
    outside_port: int
    inside_port: int


class ContainerConfig(AppBaseModel):
    id: str
    last_updated: Optional[int] = None
    config: Optional[str] = None


class Container(AppBaseModel):
    """One element instance as the agent runs it."""
    id: str
    image_id: Optional[str] = None
    registry_url: Optional[str] = None
    last_modified: Optional[int] = None
    rebuild: bool = False
    root_host_access: bool = False
    log_size: int = 0
    port_mappings: List[PortMapping] = []


class AgentRegistry(AppBaseModel):
    id: int
    url: str
    secure: bool = True
    certificate: Optional[str] = None
    requires_cert: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    user_email: Optional[str] = None
