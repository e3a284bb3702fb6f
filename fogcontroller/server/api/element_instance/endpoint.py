"""Element instance authoring routes."""
from fastapi import APIRouter, Depends

from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.user.schema import UserEntry
from .schema import (
    DetailedElementInstanceCreateRequest,
    ElementInstanceConfigUpdateRequest,
    ElementInstanceCreateRequest,
    ElementInstanceUpdateRequest,
    InstanceIdRequest,
    PortCreateRequest,
    PortDeleteRequest,
)
from .service import ElementInstanceService

router = APIRouter(tags=["Element instance"])


@router.get("/authoring/fabric/track/element/list/{trackId}", summary="Element instances of a track")
async def track_element_list(trackId: int, user: UserEntry = Depends(get_authenticated_user)):
    instances = await ElementInstanceService.list_track_instances(trackId, user)
    return ok_response(elements=[instance.to_payload() for instance in instances])


@router.post("/authoring/element/instance/create", summary="Create an element instance with ports and host access")
async def detailed_element_instance_create(
    payload: DetailedElementInstanceCreateRequest,
    user: UserEntry = Depends(get_authenticated_user),
):
    instance = await ElementInstanceService.create_detailed_instance(payload, user)
    return ok_response(element=instance.to_payload())


@router.post("/authoring/build/element/instance/create", summary="Create an element instance")
async def element_instance_create(payload: ElementInstanceCreateRequest, user: UserEntry = Depends(get_authenticated_user)):
    instance = await ElementInstanceService.create_instance(payload, user)
    return ok_response(element=instance.to_payload())


@router.post("/authoring/element/instance/update", summary="Update an element instance")
async def element_instance_update(payload: ElementInstanceUpdateRequest, user: UserEntry = Depends(get_authenticated_user)):
    instance = await ElementInstanceService.update_instance(payload, user)
    return ok_response(element=instance.to_payload())


async def element_instance_config_update(
    payload: ElementInstanceConfigUpdateRequest,
    user: UserEntry = Depends(get_authenticated_user),
):
    instance = await ElementInstanceService.update_config(payload, user)
    return ok_response(element=instance.to_payload())


for _path in ("/authoring/element/instance/config/update", "/authoring/element/instance/name/update"):
    router.add_api_route(_path, element_instance_config_update, methods=["POST"], summary="Update instance name or config")


@router.post("/authoring/element/instance/delete", summary="Delete an element instance")
async def element_instance_delete(payload: InstanceIdRequest, user: UserEntry = Depends(get_authenticated_user)):
    await ElementInstanceService.delete_instance(payload.instance_id, user)
    return ok_response(instanceId=payload.instance_id)


@router.post("/authoring/element/instance/comsat/pipe/create", summary="Open a public comsat pipe")
async def comsat_pipe_create(payload: InstanceIdRequest, user: UserEntry = Depends(get_authenticated_user)):
    pipe = await ElementInstanceService.create_comsat_pipe(payload.instance_id, user)
    return ok_response(pipe=pipe.to_payload())


@router.post("/authoring/element/instance/comsat/pipe/delete", summary="Close the public comsat pipe")
async def comsat_pipe_delete(payload: InstanceIdRequest, user: UserEntry = Depends(get_authenticated_user)):
    await ElementInstanceService.delete_comsat_pipe(payload.instance_id, user)
    return ok_response(instanceId=payload.instance_id)


@router.post("/authoring/element/instance/port/create", summary="Add a port mapping")
async def port_create(payload: PortCreateRequest, user: UserEntry = Depends(get_authenticated_user)):
    instance = await ElementInstanceService.create_port(payload, user)
    return ok_response(element=instance.to_payload())


@router.post("/authoring/element/instance/port/delete", summary="Remove a port mapping")
async def port_delete(payload: PortDeleteRequest, user: UserEntry = Depends(get_authenticated_user)):
    await ElementInstanceService.delete_port(payload, user)
    return ok_response(instanceId=payload.instance_id)
