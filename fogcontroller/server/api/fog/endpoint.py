"""Fog instance authoring routes and controller status."""
import time

from fastapi import APIRouter, Depends

from fogcontroller.core.errors import AuthenticationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.user.schema import UserEntry
from .schema import FogCreateRequest, FogDeleteRequest, FogUpdateRequest
from .service import FogService

logger = setup_logger(__name__, include_location=True)
router = APIRouter(tags=["Fog"])

_STARTED_AT = time.time()


@router.api_route("/status", methods=["GET", "POST"], summary="Controller status")
async def controller_status():
    return ok_response(uptime=round(time.time() - _STARTED_AT, 3))


@router.get("/authoring/integrator/instances/list/{userId}", summary="Fog instances of a user")
async def list_user_instances(userId: int, user: UserEntry = Depends(get_authenticated_user)):
    if userId != user.id:
        raise AuthenticationError(f"Token does not belong to user {userId}")
    fogs = await FogService.list_user_fogs(userId)
    return ok_response(instances=[fog.to_public_payload() for fog in fogs])


@router.get("/instance/create/type/{type}", summary="Create a fog instance of a fog type")
async def create_instance_of_type(type: int):
    result = await FogService.create_fog_of_type(type)
    return ok_response(**result)


@router.get("/instance/getfabriclist", summary="List fog instances")
async def list_instances(user: UserEntry = Depends(get_authenticated_user)):
    fogs = await FogService.list_user_fogs(user.id)
    return ok_response(instances=[fog.model_dump(by_alias=True, include={"uuid", "name", "fog_type_id", "daemon_status"}) for fog in fogs])


@router.get("/getfabrictypes", summary="List fog types")
async def list_fog_types():
    fog_types = await FogService.list_fog_types()
    return ok_response(fogTypes=[fog_type.to_payload() for fog_type in fog_types])


@router.post("/authoring/fabric/instance/delete", summary="Ask a fog agent to deprovision itself")
async def delete_fabric_instance(payload: FogDeleteRequest, user: UserEntry = Depends(get_authenticated_user)):
    await FogService.request_fog_deletion(payload.instance_id, user)
    return ok_response(instanceId=payload.instance_id)


@router.post("/authoring/integrator/instance/delete", summary="Delete a fog instance")
async def delete_integrator_instance(payload: FogDeleteRequest, user: UserEntry = Depends(get_authenticated_user)):
    await FogService.delete_fog(payload.instance_id, user)
    return ok_response(instanceId=payload.instance_id)


@router.post("/authoring/integrator/instance/create", summary="Create a fog instance")
async def create_integrator_instance(payload: FogCreateRequest, user: UserEntry = Depends(get_authenticated_user)):
    fog = await FogService.create_fog(payload, user)
    return ok_response(instance=fog.to_public_payload())


@router.post("/authoring/integrator/instance/update", summary="Update a fog instance")
async def update_integrator_instance(payload: FogUpdateRequest, user: UserEntry = Depends(get_authenticated_user)):
    fog = await FogService.update_fog(payload, user)
    return ok_response(instance=fog.to_public_payload())
