"""Element (catalog item) authoring routes."""
from fastapi import APIRouter, Depends

from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.response import ok_response
from fogcontroller.server.api.user.schema import UserEntry
from .schema import CatalogItemPayload, ElementDeleteRequest, ElementUpdateRequest
from .service import CatalogItemService, get_catalog_item_service

logger = setup_logger(__name__, include_location=True)
router = APIRouter(tags=["Element"])


@router.post(
    "/authoring/organization/element/create",
    summary="Create a catalog item",
)
async def create_element(
    payload: CatalogItemPayload,
    user: UserEntry = Depends(get_authenticated_user),
    service: CatalogItemService = Depends(get_catalog_item_service),
):
    result = await service.create_catalog_item(payload, user)
    return ok_response(elementId=result["id"])


@router.post(
    "/authoring/organization/element/update",
    summary="Update a catalog item owned by the user",
)
async def update_element(
    payload: ElementUpdateRequest,
    user: UserEntry = Depends(get_authenticated_user),
    service: CatalogItemService = Depends(get_catalog_item_service),
):
    item = CatalogItemPayload.model_validate(payload.model_dump(exclude={"element_id"}))
    await service.update_catalog_item(payload.element_id, item, user, is_cli=False)
    return ok_response(elementId=payload.element_id)


@router.post(
    "/authoring/organization/element/delete",
    summary="Delete a catalog item owned by the user",
)
async def delete_element(
    payload: ElementDeleteRequest,
    user: UserEntry = Depends(get_authenticated_user),
    service: CatalogItemService = Depends(get_catalog_item_service),
):
    await service.delete_catalog_item(payload.element_id, user, is_cli=False)
    return ok_response(elementId=payload.element_id)


@router.get(
    "/authoring/organization/element/list",
    summary="List public catalog items and the user's own",
)
async def list_elements(
    user: UserEntry = Depends(get_authenticated_user),
    service: CatalogItemService = Depends(get_catalog_item_service),
):
    items = await service.list_catalog_items(user, is_cli=False)
    return ok_response(elements=[item.to_payload() for item in items])


@router.get(
    "/authoring/organization/element/get/{elementId}",
    summary="Get one catalog item",
)
async def get_element(
    elementId: int,
    user: UserEntry = Depends(get_authenticated_user),
    service: CatalogItemService = Depends(get_catalog_item_service),
):
    item = await service.get_catalog_item(elementId, user, is_cli=False)
    return ok_response(element=item.to_payload())
