"""
Agent-facing routes. Every route is keyed by the fog uuid and fog access
token in the path.
"""
from fastapi import APIRouter, Depends

from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.auth import get_authenticated_fog
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.fog.schema import FogConfig, FogEntry, FogStatus
from fogcontroller.server.api.fog.service import FogService
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.routing.service import RoutingService
from .service import InstanceService

logger = setup_logger(__name__, include_location=True)
router = APIRouter(tags=["Agent"])


@router.api_route(
    "/instance/changes/id/{ID}/token/{Token}/timestamp/{TimeStamp}",
    methods=["GET", "POST"],
    summary="Areas changed since the agent's last poll",
)
async def instance_changes(TimeStamp: int, fog: FogEntry = Depends(get_authenticated_fog)):
    changes = await ChangeTrackingService.get_changes(fog.uuid, TimeStamp)
    return ok_response(changes=changes)


@router.api_route("/instance/config/id/{ID}/token/{Token}", methods=["GET", "POST"], summary="Agent configuration")
async def instance_config(fog: FogEntry = Depends(get_authenticated_fog)):
    return ok_response(config=FogService.get_config(fog))


@router.post("/instance/config/changes/id/{ID}/token/{Token}", summary="Configuration changed on the agent")
async def instance_config_changes(payload: FogConfig, fog: FogEntry = Depends(get_authenticated_fog)):
    await FogService.update_config_from_agent(fog, payload)
    return ok_response()


@router.post("/instance/status/id/{ID}/token/{Token}", summary="Agent status report")
async def instance_status(payload: FogStatus, fog: FogEntry = Depends(get_authenticated_fog)):
    await FogService.update_status(fog, payload)
    return ok_response()


@router.api_route("/instance/containerconfig/id/{ID}/token/{Token}", methods=["GET", "POST"], summary="Container configs")
async def container_config(fog: FogEntry = Depends(get_authenticated_fog)):
    configs = await InstanceService.get_container_configs(fog)
    return ok_response(containerconfig=[config.to_payload() for config in configs])


@router.api_route("/instance/containerlist/id/{ID}/token/{Token}", methods=["GET", "POST"], summary="Containers to run")
async def container_list(fog: FogEntry = Depends(get_authenticated_fog)):
    containers = await InstanceService.get_container_list(fog)
    return ok_response(containerlist=[container.to_payload() for container in containers])


@router.api_route("/instance/registries/id/{ID}/token/{Token}", methods=["GET", "POST"], summary="Docker registries")
async def instance_registries(fog: FogEntry = Depends(get_authenticated_fog)):
    registries = await InstanceService.get_registries(fog)
    return ok_response(registries=[registry.to_payload() for registry in registries])


@router.api_route("/instance/routing/id/{ID}/token/{Token}", methods=["GET", "POST"], summary="Message routes")
async def instance_routing(fog: FogEntry = Depends(get_authenticated_fog)):
    routes = await RoutingService.get_fog_routing(fog.uuid)
    return ok_response(routing=[route.to_payload() for route in routes])
