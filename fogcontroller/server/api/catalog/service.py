"""
Catalog item storage service.

Every operation takes the acting user and an `is_cli` flag: the CLI runs on
the controller host and may touch any item, while API callers only see public
items and their own.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import ConflictError, NotFoundError, ValidationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.user.schema import UserEntry
from .schema import CatalogItemEntry, CatalogItemImage, CatalogItemPayload, InfoType

logger = setup_logger(__name__, include_location=True)

_ITEM_COLUMNS = (
    "name", "description", "category", "config_example", "publisher",
    "disk_required", "ram_required", "picture", "is_public", "registry_id",
)

_SELECT_ITEMS = """
    SELECT
        ci.id, ci.name, ci.description, ci.category, ci.config_example, ci.publisher,
        ci.disk_required, ci.ram_required, ci.picture, ci.is_public, ci.registry_id, ci.user_id,
        COALESCE((
            SELECT json_agg(json_build_object('containerImage', img.container_image, 'fogTypeId', img.fog_type_id)
                            ORDER BY img.fog_type_id)
            FROM fogcontroller.catalog_item_images img
            WHERE img.catalog_item_id = ci.id
        ), '[]'::json) AS images,
        (
            SELECT json_build_object('infoType', it.info_type, 'infoFormat', it.info_format)
            FROM fogcontroller.catalog_item_input_types it
            WHERE it.catalog_item_id = ci.id
        ) AS input_type,
        (
            SELECT json_build_object('infoType', ot.info_type, 'infoFormat', ot.info_format)
            FROM fogcontroller.catalog_item_output_types ot
            WHERE ot.catalog_item_id = ci.id
        ) AS output_type
    FROM fogcontroller.catalog_items ci
"""


def _scope(user: Optional[UserEntry], is_cli: bool, params: Dict[str, Any], public: bool = False) -> str:
    """SQL condition restricting items to what the caller may access."""
    if is_cli or user is None:
        return "TRUE"
    params["user_id"] = user.id
    if public:
        return "(ci.is_public OR ci.user_id = %(user_id)s)"
    return "ci.user_id = %(user_id)s"


class CatalogItemService:

    @staticmethod
    async def _check_name(cur, name: str, user_id: Optional[int], exclude_id: Optional[int] = None) -> None:
        await cur.execute(
            """
            SELECT id FROM fogcontroller.catalog_items
            WHERE name = %(name)s AND user_id IS NOT DISTINCT FROM %(user_id)s
              AND (%(exclude_id)s::int IS NULL OR id <> %(exclude_id)s)
            """,
            {"name": name, "user_id": user_id, "exclude_id": exclude_id}
        )
        if await cur.fetchone():
            raise ConflictError(f"Duplicate name '{name}'")

    @staticmethod
    async def _check_registry(cur, registry_id: Optional[int]) -> None:
        if registry_id is None:
            return
        await cur.execute("SELECT 1 FROM fogcontroller.registries WHERE id = %(id)s", {"id": registry_id})
        if await cur.fetchone() is None:
            raise NotFoundError(f"Invalid registry id {registry_id}")

    @staticmethod
    async def _save_info_type(cur, table: str, item_id: int, info: Optional[InfoType]) -> None:
        if info is None:
            return
        await cur.execute(
            f"""
            INSERT INTO fogcontroller.{table} (catalog_item_id, info_type, info_format)
            VALUES (%(id)s, %(info_type)s, %(info_format)s)
            ON CONFLICT (catalog_item_id) DO UPDATE
                SET info_type = EXCLUDED.info_type, info_format = EXCLUDED.info_format
            """,
            {"id": item_id, "info_type": info.info_type, "info_format": info.info_format}
        )

    @staticmethod
    async def _save_image(cur, item_id: int, image: CatalogItemImage) -> None:
        """One image per fog type: a repeated fog type replaces the earlier image."""
        await cur.execute(
            """
            INSERT INTO fogcontroller.catalog_item_images (catalog_item_id, fog_type_id, container_image)
            VALUES (%(id)s, %(fog_type_id)s, %(container_image)s)
            ON CONFLICT (catalog_item_id, fog_type_id) DO UPDATE
                SET container_image = EXCLUDED.container_image
            """,
            {"id": item_id, "fog_type_id": image.fog_type_id, "container_image": image.container_image}
        )

    @staticmethod
    async def _fetch(cur, where: str, params: Dict[str, Any]) -> List[CatalogItemEntry]:
        await cur.execute(f"{_SELECT_ITEMS} WHERE {where} ORDER BY ci.id", params)
        rows = await cur.fetchall() or []
        return [CatalogItemEntry(**row) for row in rows]

    @staticmethod
    async def create_catalog_item(item: CatalogItemPayload, user: UserEntry) -> Dict[str, int]:
        if not item.name:
            raise ValidationError("Catalog item name is required")

        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await CatalogItemService._check_name(cur, item.name, user.id)
                await CatalogItemService._check_registry(cur, item.registry_id)

                values = {column: getattr(item, column) for column in _ITEM_COLUMNS}
                values["is_public"] = bool(values["is_public"])
                values["user_id"] = user.id
                columns = ", ".join(values)
                placeholders = ", ".join(f"%({column})s" for column in values)
                await cur.execute(
                    f"INSERT INTO fogcontroller.catalog_items ({columns}) VALUES ({placeholders}) RETURNING id",
                    values
                )
                item_id = (await cur.fetchone())["id"]

                for image in item.images or []:
                    await CatalogItemService._save_image(cur, item_id, image)
                await CatalogItemService._save_info_type(cur, "catalog_item_input_types", item_id, item.input_type)
                await CatalogItemService._save_info_type(cur, "catalog_item_output_types", item_id, item.output_type)
                await conn.commit()

        logger.info(f"Created catalog item {item_id} '{item.name}' for user {user.id}")
        return {"id": item_id}

    @staticmethod
    async def update_catalog_item(
        item_id: int,
        item: CatalogItemPayload,
        user: Optional[UserEntry] = None,
        is_cli: bool = False,
    ) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                params: Dict[str, Any] = {"id": item_id}
                scope = _scope(user, is_cli, params)
                await cur.execute(
                    f"SELECT ci.id, ci.user_id FROM fogcontroller.catalog_items ci WHERE ci.id = %(id)s AND {scope}",
                    params
                )
                existing = await cur.fetchone()
                if existing is None:
                    raise NotFoundError(f"Invalid catalog item id {item_id}")

                if item.name:
                    await CatalogItemService._check_name(cur, item.name, existing["user_id"], exclude_id=item_id)
                await CatalogItemService._check_registry(cur, item.registry_id)

                changes = {column: getattr(item, column) for column in _ITEM_COLUMNS if getattr(item, column) is not None}
                if changes:
                    assignments = ", ".join(f"{column} = %({column})s" for column in changes)
                    await cur.execute(
                        f"UPDATE fogcontroller.catalog_items SET {assignments} WHERE id = %(id)s",
                        {**changes, "id": item_id}
                    )

                if item.images is not None:
                    for image in item.images:
                        await CatalogItemService._save_image(cur, item_id, image)
                    # Fogs running this item must pull the new images
                    await cur.execute(
                        "SELECT DISTINCT fog_uuid FROM fogcontroller.element_instances WHERE catalog_item_id = %(id)s",
                        {"id": item_id}
                    )
                    fog_uuids = [row["fog_uuid"] for row in await cur.fetchall() or []]
                    await ChangeTrackingService.bump(cur, fog_uuids, "container_list")

                await CatalogItemService._save_info_type(cur, "catalog_item_input_types", item_id, item.input_type)
                await CatalogItemService._save_info_type(cur, "catalog_item_output_types", item_id, item.output_type)
                await conn.commit()
        logger.info(f"Updated catalog item {item_id}")

    @staticmethod
    async def delete_catalog_item(item_id: int, user: Optional[UserEntry] = None, is_cli: bool = False) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                params: Dict[str, Any] = {"id": item_id}
                scope = _scope(user, is_cli, params)
                await cur.execute(
                    f"DELETE FROM fogcontroller.catalog_items ci WHERE ci.id = %(id)s AND {scope}",
                    params
                )
                if cur.rowcount == 0:
                    raise NotFoundError(f"Invalid catalog item id {item_id}")
                await conn.commit()
        logger.info(f"Deleted catalog item {item_id}")

    @staticmethod
    async def list_catalog_items(user: Optional[UserEntry] = None, is_cli: bool = False) -> List[CatalogItemEntry]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                params: Dict[str, Any] = {}
                return await CatalogItemService._fetch(cur, _scope(user, is_cli, params, public=True), params)

    @staticmethod
    async def get_catalog_item(item_id: int, user: Optional[UserEntry] = None, is_cli: bool = False) -> CatalogItemEntry:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                params: Dict[str, Any] = {"id": item_id}
                where = f"ci.id = %(id)s AND {_scope(user, is_cli, params, public=True)}"
                items = await CatalogItemService._fetch(cur, where, params)
        if not items:
            raise NotFoundError(f"Invalid catalog item id {item_id}")
        return items[0]


def get_catalog_item_service() -> CatalogItemService:
    return CatalogItemService()
