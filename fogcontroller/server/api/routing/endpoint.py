from fastapi import APIRouter, Depends

from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.user.schema import UserEntry
from .schema import RouteRequest
from .service import RoutingService

router = APIRouter(tags=["Routing"])


@router.post("/authoring/element/instance/route/create", summary="Route messages between two element instances")
async def create_route(payload: RouteRequest, user: UserEntry = Depends(get_authenticated_user)):
    route = await RoutingService.create_route(payload, user)
    return ok_response(route=route.to_payload())


@router.post("/authoring/element/instance/route/delete", summary="Remove a route")
async def delete_route(payload: RouteRequest, user: UserEntry = Depends(get_authenticated_user)):
    await RoutingService.delete_route(payload, user)
    return ok_response()
