from typing import List, Optional

from pydantic import Field

from fogcontroller.core.common import AppBaseModel


class PortEntry(AppBaseModel):
    port_internal: int = Field(ge=1, le=65535)
    port_external: int = Field(ge=1, le=65535)


class ElementInstanceEntry(AppBaseModel):
    uuid: str
    name: Optional[str] = None
    config: Optional[str] = None
    config_last_updated: Optional[int] = None
    track_id: Optional[int] = None
    catalog_item_id: Optional[int] = None
    fog_uuid: Optional[str] = None
    user_id: Optional[int] = None
    root_host_access: bool = False
    log_size: int = 0
    rebuild: bool = False
    is_stream_viewer: bool = False
    ports: List[PortEntry] = []


class ElementInstanceCreateRequest(AppBaseModel):
    name: Optional[str] = None
    catalog_item_id: int
    track_id: Optional[int] = None
    fog_uuid: Optional[str] = None
    config: Optional[str] = None


class DetailedElementInstanceCreateRequest(ElementInstanceCreateRequest):
    root_host_access: bool = False
    log_size: int = Field(default=0, ge=0)
    ports: List[PortEntry] = []


class ElementInstanceUpdateRequest(AppBaseModel):
    instance_id: str
    name: Optional[str] = None
    config: Optional[str] = None
    fog_uuid: Optional[str] = None
    root_host_access: Optional[bool] = None
    log_size: Optional[int] = Field(default=None, ge=0)
    rebuild: Optional[bool] = None


class ElementInstanceConfigUpdateRequest(AppBaseModel):
    instance_id: str
    name: Optional[str] = None
    config: Optional[str] = None


class InstanceIdRequest(AppBaseModel):
    instance_id: str


class PortCreateRequest(InstanceIdRequest):
    port_internal: int = Field(ge=1, le=65535)
    port_external: int = Field(ge=1, le=65535)


class PortDeleteRequest(InstanceIdRequest):
    port_internal: int


class ComsatPipe(AppBaseModel):
    element_instance_uuid: str
    passcode: str
    port: Optional[int] = None
