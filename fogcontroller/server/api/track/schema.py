from typing import Optional

from fogcontroller.core.common import AppBaseModel


class TrackEntry(AppBaseModel):
    id: int
    name: str
    description: Optional[str] = None
    last_updated: Optional[int] = None
    permissions: Optional[str] = None
    is_selected: bool = False
    is_activated: bool = True
    user_id: Optional[int] = None
    fog_uuid: Optional[str] = None


class UserTrackUpdateRequest(AppBaseModel):
    """Creates the track when `track_id` is absent."""
    track_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    permissions: Optional[str] = None
    is_selected: Optional[bool] = None
    is_activated: Optional[bool] = None
    fog_uuid: Optional[str] = None


class FogTrackUpdateRequest(AppBaseModel):
    track_id: int
    instance_id: str
    is_activated: Optional[bool] = None


class TrackDeleteRequest(AppBaseModel):
    track_id: int
