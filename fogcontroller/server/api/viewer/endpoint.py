from fastapi import APIRouter, Depends, Query

from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.user.schema import UserEntry
from .service import ViewerService

router = APIRouter(tags=["Stream viewer"])


@router.get("/authoring/fabric/viewer/access", summary="Stream viewer access for a fog")
async def fog_viewer_access(
    instanceId: str = Query(..., description="Fog instance uuid"),
    user: UserEntry = Depends(get_authenticated_user),
):
    access = await ViewerService.get_viewer_access(instanceId, user)
    return ok_response(**access.to_payload())
