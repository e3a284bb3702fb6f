from fastapi import APIRouter, Depends

from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.user.schema import UserEntry
from .schema import ProvisionKeyDeleteRequest
from .service import ProvisionService

router = APIRouter(tags=["Provisioning"])


@router.get("/authoring/fabric/provisionkey/instanceid/{instanceId}", summary="Issue a provisioning key for a fog")
async def get_provision_key(instanceId: str, user: UserEntry = Depends(get_authenticated_user)):
    key = await ProvisionService.issue_key(instanceId, user)
    return ok_response(**key.to_payload())


@router.api_route(
    "/instance/provision/key/{provisionKey}/fabrictype/{fabricType}",
    methods=["GET", "POST"],
    summary="Provision an agent with a key",
)
async def provision_fog(provisionKey: str, fabricType: int):
    result = await ProvisionService.provision(provisionKey, fabricType)
    return ok_response(**result.to_payload())


@router.post("/authoring/fabric/provisioningkey/list/delete", summary="Revoke a provisioning key")
async def delete_provision_key(payload: ProvisionKeyDeleteRequest, user: UserEntry = Depends(get_authenticated_user)):
    await ProvisionService.delete_key(payload.provision_key, user)
    return ok_response()
