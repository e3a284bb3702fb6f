from datetime import datetime
from typing import Optional

from pydantic import Field

from fogcontroller.core.common import AppBaseModel


class FogConfig(AppBaseModel):
    """Agent configuration pushed to the fog on `/instance/config`."""
    network_interface: Optional[str] = None
    docker_url: Optional[str] = None
    disk_limit: Optional[float] = Field(default=None, ge=0)
    disk_directory: Optional[str] = None
    memory_limit: Optional[float] = Field(default=None, ge=0)
    cpu_limit: Optional[float] = Field(default=None, ge=0)
    log_limit: Optional[float] = Field(default=None, ge=0)
    log_directory: Optional[str] = None
    log_file_count: Optional[int] = Field(default=None, ge=0)
    status_frequency: Optional[int] = Field(default=None, ge=0)
    change_frequency: Optional[int] = Field(default=None, ge=0)
    device_scan_frequency: Optional[int] = Field(default=None, ge=0)
    gps_mode: Optional[str] = None


class FogStatus(AppBaseModel):
    """Status report posted by the agent on `/instance/status`."""
    daemon_status: Optional[str] = None
    daemon_operating_duration: Optional[int] = None
    daemon_last_start: Optional[int] = None
    memory_usage: Optional[float] = None
    disk_usage: Optional[float] = None
    cpu_usage: Optional[float] = None
    memory_violation: Optional[str] = None
    disk_violation: Optional[str] = None
    cpu_violation: Optional[str] = None
    element_status: Optional[str] = None
    repository_count: Optional[int] = None
    repository_status: Optional[str] = None
    system_time: Optional[int] = None
    last_status_time: Optional[int] = None
    ip_address: Optional[str] = None
    processed_messages: Optional[int] = None
    element_message_counts: Optional[str] = None
    message_speed: Optional[float] = None
    last_command_time: Optional[int] = None
    version: Optional[str] = None


class FogDetails(AppBaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    fog_type_id: Optional[int] = None


class FogEntry(FogDetails, FogConfig, FogStatus):
    uuid: str
    user_id: Optional[int] = None
    access_token: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_public_payload(self) -> dict:
        """Wire form without the agent access token."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"access_token"}, mode="json")


class FogType(AppBaseModel):
    id: int
    name: str
    image: Optional[str] = None
    description: Optional[str] = None


class FogCreateRequest(FogDetails):
    pass


class FogUpdateRequest(FogDetails, FogConfig):
    instance_id: str


class FogDeleteRequest(AppBaseModel):
    instance_id: str
