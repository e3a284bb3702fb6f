"""
Catalog item schemas.

A catalog item is a reusable microservice definition: container images per
fog type, resource requirements and the data types it consumes and emits.
Field names are snake_case in Python and camelCase on the wire.
"""
from typing import List, Optional

from pydantic import Field

from fogcontroller.core.common import AppBaseModel

X86_FOG_TYPE_ID = 1
ARM_FOG_TYPE_ID = 2


class CatalogItemImage(AppBaseModel):
    container_image: Optional[str] = None
    fog_type_id: int


class InfoType(AppBaseModel):
    info_type: Optional[str] = None
    info_format: Optional[str] = None


class CatalogItemPayload(AppBaseModel):
    """Create/update body; the same shape as the CLI `--file` JSON."""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    config_example: Optional[str] = None
    publisher: Optional[str] = None
    disk_required: Optional[int] = Field(default=None, ge=0)
    ram_required: Optional[int] = Field(default=None, ge=0)
    picture: Optional[str] = None
    is_public: Optional[bool] = None
    registry_id: Optional[int] = None
    images: Optional[List[CatalogItemImage]] = None
    input_type: Optional[InfoType] = None
    output_type: Optional[InfoType] = None


class CatalogItemEntry(CatalogItemPayload):
    id: int
    user_id: Optional[int] = None


class ElementUpdateRequest(CatalogItemPayload):
    element_id: int


class ElementDeleteRequest(AppBaseModel):
    element_id: int
