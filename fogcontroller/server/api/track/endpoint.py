from fastapi import APIRouter, Depends

from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.user.schema import UserEntry
from .schema import FogTrackUpdateRequest, TrackDeleteRequest, UserTrackUpdateRequest
from .service import TrackService

router = APIRouter(tags=["Track"])


@router.get("/authoring/fabric/track/list/{instanceId}", summary="Tracks deployed on a fog")
async def fog_track_list(instanceId: str, user: UserEntry = Depends(get_authenticated_user)):
    tracks = await TrackService.list_fog_tracks(instanceId, user)
    return ok_response(tracks=[track.to_payload() for track in tracks])


@router.post("/authoring/user/track/update", summary="Create or update a track")
async def user_track_update(payload: UserTrackUpdateRequest, user: UserEntry = Depends(get_authenticated_user)):
    track = await TrackService.update_user_track(payload, user)
    return ok_response(track=track.to_payload())


@router.post("/authoring/fabric/track/update", summary="Attach a track to a fog")
async def fog_track_update(payload: FogTrackUpdateRequest, user: UserEntry = Depends(get_authenticated_user)):
    track = await TrackService.update_fog_track(payload, user)
    return ok_response(track=track.to_payload())


@router.post("/authoring/fabric/track/delete", summary="Delete a track")
async def fog_track_delete(payload: TrackDeleteRequest, user: UserEntry = Depends(get_authenticated_user)):
    await TrackService.delete_track(payload.track_id, user)
    return ok_response(trackId=payload.track_id)
