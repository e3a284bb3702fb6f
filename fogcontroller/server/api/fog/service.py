"""
Fog node (ioFog agent) storage service.

Fogs are identified by a 32 character uuid and authenticate agent requests
with the access token issued at provisioning time.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fogcontroller.core.common import generate_access_token, generate_random_string, now_ms
from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import NotFoundError, ValidationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.user.schema import UserEntry
from .schema import (
    FogConfig,
    FogCreateRequest,
    FogEntry,
    FogStatus,
    FogType,
    FogUpdateRequest,
)

logger = setup_logger(__name__, include_location=True)

FOG_UUID_LENGTH = 32

_CONFIG_COLUMNS = tuple(FogConfig.model_fields)


class FogService:

    @staticmethod
    async def _fetch(where: str, params: Dict[str, Any]) -> List[FogEntry]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(f"SELECT * FROM fogcontroller.fogs WHERE {where} ORDER BY created_at, uuid", params)
                rows = await cur.fetchall() or []
                return [FogEntry(**row) for row in rows]

    @staticmethod
    async def _check_fog_type(cur, fog_type_id: Optional[int]) -> None:
        if fog_type_id is None:
            return
        await cur.execute("SELECT 1 FROM fogcontroller.fog_types WHERE id = %(id)s", {"id": fog_type_id})
        if await cur.fetchone() is None:
            raise ValidationError(f"Invalid fog type {fog_type_id}")

    @staticmethod
    async def _insert(cur, values: Dict[str, Any]) -> FogEntry:
        values = {"uuid": generate_random_string(FOG_UUID_LENGTH), **values}
        columns = ", ".join(values)
        placeholders = ", ".join(f"%({column})s" for column in values)
        await cur.execute(
            f"INSERT INTO fogcontroller.fogs ({columns}) VALUES ({placeholders}) RETURNING *",
            values
        )
        row = await cur.fetchone()
        await ChangeTrackingService.create_for_fog(cur, row["uuid"])
        return FogEntry(**row)

    @staticmethod
    async def get_fog_by_token(fog_uuid: str, token: str) -> Optional[FogEntry]:
        if not fog_uuid or not token:
            return None
        fogs = await FogService._fetch("uuid = %(uuid)s AND access_token = %(token)s", {"uuid": fog_uuid, "token": token})
        return fogs[0] if fogs else None

    @staticmethod
    async def get_fog(fog_uuid: str, user: Optional[UserEntry] = None) -> FogEntry:
        params: Dict[str, Any] = {"uuid": fog_uuid}
        where = "uuid = %(uuid)s"
        if user is not None:
            where += " AND user_id = %(user_id)s"
            params["user_id"] = user.id
        fogs = await FogService._fetch(where, params)
        if not fogs:
            raise NotFoundError(f"Invalid fog instance id {fog_uuid}")
        return fogs[0]

    @staticmethod
    async def create_fog(request: FogCreateRequest, user: Optional[UserEntry]) -> FogEntry:
        values = request.model_dump(exclude_none=True)
        if user is not None:
            values["user_id"] = user.id
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await FogService._check_fog_type(cur, request.fog_type_id)
                fog = await FogService._insert(cur, values)
                await conn.commit()
        logger.info(f"Created fog instance {fog.uuid}")
        return fog

    @staticmethod
    async def create_fog_of_type(fog_type_id: int) -> Dict[str, str]:
        """Unowned fog of the given type with its access token issued immediately."""
        token = generate_access_token()
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await FogService._check_fog_type(cur, fog_type_id)
                fog = await FogService._insert(cur, {"fog_type_id": fog_type_id, "access_token": token})
                await conn.commit()
        return {"instanceId": fog.uuid, "token": token}

    @staticmethod
    async def update_fog(request: FogUpdateRequest, user: Optional[UserEntry] = None) -> FogEntry:
        fog = await FogService.get_fog(request.instance_id, user)
        changes = request.model_dump(exclude_none=True, exclude={"instance_id"})
        if not changes:
            return fog
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await FogService._check_fog_type(cur, request.fog_type_id)
                assignments = ", ".join(f"{column} = %({column})s" for column in changes)
                await cur.execute(
                    f"UPDATE fogcontroller.fogs SET {assignments}, updated_at = now() WHERE uuid = %(uuid)s RETURNING *",
                    {**changes, "uuid": fog.uuid}
                )
                row = await cur.fetchone()
                if any(column in _CONFIG_COLUMNS for column in changes):
                    await ChangeTrackingService.bump(cur, [fog.uuid], "config")
                await conn.commit()
        return FogEntry(**row)

    @staticmethod
    async def delete_fog(fog_uuid: str, user: Optional[UserEntry] = None) -> None:
        """Remove the fog and everything hanging off it."""
        await FogService.get_fog(fog_uuid, user)
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM fogcontroller.fogs WHERE uuid = %(uuid)s", {"uuid": fog_uuid})
                await conn.commit()
        logger.info(f"Deleted fog instance {fog_uuid}")

    @staticmethod
    async def request_fog_deletion(fog_uuid: str, user: Optional[UserEntry] = None) -> None:
        """Ask the agent to deprovision itself; its element instances are left without a fog."""
        await FogService.get_fog(fog_uuid, user)
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "UPDATE fogcontroller.element_instances SET fog_uuid = NULL, updated_at = now() WHERE fog_uuid = %(uuid)s",
                    {"uuid": fog_uuid}
                )
                await ChangeTrackingService.bump(cur, [fog_uuid], "deletenode", "container_list")
                await conn.commit()

    @staticmethod
    async def list_user_fogs(user_id: int) -> List[FogEntry]:
        return await FogService._fetch("user_id = %(user_id)s", {"user_id": user_id})

    @staticmethod
    async def list_fogs() -> List[FogEntry]:
        return await FogService._fetch("TRUE", {})

    @staticmethod
    async def list_fog_types() -> List[FogType]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT id, name, image, description FROM fogcontroller.fog_types ORDER BY id")
                rows = await cur.fetchall() or []
                return [FogType(**row) for row in rows]

    @staticmethod
    def get_config(fog: FogEntry) -> Dict[str, Any]:
        return FogConfig.model_validate(fog.model_dump(include=set(_CONFIG_COLUMNS))).to_payload()

    @staticmethod
    async def update_config_from_agent(fog: FogEntry, config: FogConfig) -> None:
        """Store configuration changed locally on the agent; no change is signalled back."""
        changes = config.model_dump(exclude_none=True)
        if not changes:
            return
        assignments = ", ".join(f"{column} = %({column})s" for column in changes)
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"UPDATE fogcontroller.fogs SET {assignments}, updated_at = now() WHERE uuid = %(uuid)s",
                    {**changes, "uuid": fog.uuid}
                )
                await conn.commit()

    @staticmethod
    async def update_status(fog: FogEntry, status: FogStatus) -> None:
        changes = status.model_dump(exclude_none=True)
        changes["last_status_time"] = now_ms()
        assignments = ", ".join(f"{column} = %({column})s" for column in changes)
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"UPDATE fogcontroller.fogs SET {assignments}, updated_at = now() WHERE uuid = %(uuid)s",
                    {**changes, "uuid": fog.uuid}
                )
                await conn.commit()
