"""
Catalog item package: element authoring endpoints, schemas and the storage
service shared with the `catalog` CLI verb.
"""

from .endpoint import router
from .service import CatalogItemService, get_catalog_item_service
from .schema import CatalogItemEntry, CatalogItemPayload, CatalogItemImage, InfoType

__all__ = [
    'router',
    'CatalogItemService',
    'get_catalog_item_service',
    'CatalogItemEntry',
    'CatalogItemPayload',
    'CatalogItemImage',
    'InfoType',
]
