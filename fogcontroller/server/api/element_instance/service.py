"""
Element instance storage service.

An element instance is a catalog item deployed inside a track, optionally
placed on a fog. Whatever changes on an instance is signalled to the fog it
runs on through change tracking.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from psycopg import errors as pg_errors

from fogcontroller.core.common import generate_random_string, now_ms
from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import ConflictError, NotFoundError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.user.schema import UserEntry
from .schema import (
    ComsatPipe,
    DetailedElementInstanceCreateRequest,
    ElementInstanceConfigUpdateRequest,
    ElementInstanceCreateRequest,
    ElementInstanceEntry,
    ElementInstanceUpdateRequest,
    PortCreateRequest,
    PortDeleteRequest,
)

logger = setup_logger(__name__, include_location=True)

INSTANCE_UUID_LENGTH = 32
PASSCODE_LENGTH = 32
COMSAT_FIRST_PORT = 50000
PIPE_PORT_CONSTRAINT = "satellite_pipes_port_key"

_SELECT_INSTANCES = """
    SELECT
        ei.uuid, ei.name, ei.config, ei.config_last_updated, ei.track_id, ei.catalog_item_id,
        ei.fog_uuid, ei.user_id, ei.root_host_access, ei.log_size, ei.rebuild, ei.is_stream_viewer,
        COALESCE((
            SELECT json_agg(json_build_object('portInternal', p.port_internal, 'portExternal', p.port_external)
                            ORDER BY p.id)
            FROM fogcontroller.element_instance_ports p
            WHERE p.element_instance_uuid = ei.uuid
        ), '[]'::json) AS ports
    FROM fogcontroller.element_instances ei
"""


class ElementInstanceService:

    @staticmethod
    async def _get_owned(cur, instance_uuid: str, user: UserEntry) -> Dict[str, Any]:
        await cur.execute(
            f"{_SELECT_INSTANCES} WHERE ei.uuid = %(uuid)s AND ei.user_id = %(user_id)s",
            {"uuid": instance_uuid, "user_id": user.id}
        )
        row = await cur.fetchone()
        if row is None:
            raise NotFoundError(f"Invalid element instance id {instance_uuid}")
        return row

    @staticmethod
    async def _check_references(cur, request: ElementInstanceCreateRequest, user: UserEntry) -> None:
        await cur.execute(
            """
            SELECT 1 FROM fogcontroller.catalog_items
            WHERE id = %(id)s AND (is_public OR user_id = %(user_id)s)
            """,
            {"id": request.catalog_item_id, "user_id": user.id}
        )
        if await cur.fetchone() is None:
            raise NotFoundError(f"Invalid catalog item id {request.catalog_item_id}")
        if request.track_id is not None:
            await cur.execute(
                "SELECT 1 FROM fogcontroller.data_tracks WHERE id = %(id)s AND user_id = %(user_id)s",
                {"id": request.track_id, "user_id": user.id}
            )
            if await cur.fetchone() is None:
                raise NotFoundError(f"Invalid track id {request.track_id}")
        await ElementInstanceService._check_fog(cur, request.fog_uuid, user)

    @staticmethod
    async def _check_fog(cur, fog_uuid: Optional[str], user: UserEntry) -> None:
        if fog_uuid is None:
            return
        await cur.execute(
            "SELECT 1 FROM fogcontroller.fogs WHERE uuid = %(uuid)s AND user_id = %(user_id)s",
            {"uuid": fog_uuid, "user_id": user.id}
        )
        if await cur.fetchone() is None:
            raise NotFoundError(f"Invalid fog instance id {fog_uuid}")

    @staticmethod
    async def _insert(cur, request: ElementInstanceCreateRequest, user: UserEntry, **extra: Any) -> str:
        values = {
            "uuid": generate_random_string(INSTANCE_UUID_LENGTH),
            "name": request.name,
            "config": request.config,
            "config_last_updated": now_ms() if request.config is not None else None,
            "track_id": request.track_id,
            "catalog_item_id": request.catalog_item_id,
            "fog_uuid": request.fog_uuid,
            "user_id": user.id,
            **extra,
        }
        columns = ", ".join(values)
        placeholders = ", ".join(f"%({column})s" for column in values)
        await cur.execute(
            f"INSERT INTO fogcontroller.element_instances ({columns}) VALUES ({placeholders})",
            values
        )
        return values["uuid"]

    @staticmethod
    async def list_track_instances(track_id: int, user: UserEntry) -> List[ElementInstanceEntry]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"{_SELECT_INSTANCES} WHERE ei.track_id = %(track_id)s AND ei.user_id = %(user_id)s "
                    f"ORDER BY ei.created_at, ei.uuid",
                    {"track_id": track_id, "user_id": user.id}
                )
                rows = await cur.fetchall() or []
                return [ElementInstanceEntry(**row) for row in rows]

    @staticmethod
    async def get_instance(instance_uuid: str, user: UserEntry) -> ElementInstanceEntry:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                row = await ElementInstanceService._get_owned(cur, instance_uuid, user)
                return ElementInstanceEntry(**row)

    @staticmethod
    async def create_instance(request: ElementInstanceCreateRequest, user: UserEntry) -> ElementInstanceEntry:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await ElementInstanceService._check_references(cur, request, user)
                uuid = await ElementInstanceService._insert(cur, request, user)
                await ChangeTrackingService.bump(cur, [request.fog_uuid], "container_list", "container_config")
                row = await ElementInstanceService._get_owned(cur, uuid, user)
                await conn.commit()
        logger.info(f"Created element instance {uuid} from catalog item {request.catalog_item_id}")
        return ElementInstanceEntry(**row)

    @staticmethod
    async def create_detailed_instance(
        request: DetailedElementInstanceCreateRequest,
        user: UserEntry,
    ) -> ElementInstanceEntry:
        """Create an instance together with its host access, log size and port mappings."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await ElementInstanceService._check_references(cur, request, user)
                uuid = await ElementInstanceService._insert(
                    cur, request, user,
                    root_host_access=request.root_host_access,
                    log_size=request.log_size,
                )
                for port in request.ports:
                    await cur.execute(
                        """
                        INSERT INTO fogcontroller.element_instance_ports (element_instance_uuid, port_internal, port_external)
                        VALUES (%(uuid)s, %(internal)s, %(external)s)
                        """,
                        {"uuid": uuid, "internal": port.port_internal, "external": port.port_external}
                    )
                await ChangeTrackingService.bump(cur, [request.fog_uuid], "container_list", "container_config")
                row = await ElementInstanceService._get_owned(cur, uuid, user)
                await conn.commit()
        logger.info(f"Created element instance {uuid} with {len(request.ports)} port mapping(s)")
        return ElementInstanceEntry(**row)

    @staticmethod
    async def update_instance(request: ElementInstanceUpdateRequest, user: UserEntry) -> ElementInstanceEntry:
        changes = request.model_dump(exclude_none=True, exclude={"instance_id"})
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                current = await ElementInstanceService._get_owned(cur, request.instance_id, user)
                if not changes:
                    return ElementInstanceEntry(**current)
                if "fog_uuid" in changes:
                    await ElementInstanceService._check_fog(cur, request.fog_uuid, user)
                if "config" in changes:
                    changes["config_last_updated"] = now_ms()

                assignments = ", ".join(f"{column} = %({column})s" for column in changes)
                await cur.execute(
                    f"UPDATE fogcontroller.element_instances SET {assignments}, updated_at = now() WHERE uuid = %(uuid)s",
                    {**changes, "uuid": request.instance_id}
                )

                fogs = [current["fog_uuid"], changes.get("fog_uuid")]
                if "config" in changes:
                    await ChangeTrackingService.bump(cur, fogs, "container_config")
                if set(changes) & {"fog_uuid", "root_host_access", "log_size", "rebuild"}:
                    await ChangeTrackingService.bump(cur, fogs, "container_list")
                if changes.get("fog_uuid", current["fog_uuid"]) != current["fog_uuid"]:
                    await ChangeTrackingService.bump(cur, fogs, "routing")
                row = await ElementInstanceService._get_owned(cur, request.instance_id, user)
                await conn.commit()
        return ElementInstanceEntry(**row)

    @staticmethod
    async def update_config(request: ElementInstanceConfigUpdateRequest, user: UserEntry) -> ElementInstanceEntry:
        """Name and config only; serves both the config and the name update routes."""
        update = ElementInstanceUpdateRequest(instance_id=request.instance_id, name=request.name, config=request.config)
        return await ElementInstanceService.update_instance(update, user)

    @staticmethod
    async def delete_instance(instance_uuid: str, user: UserEntry) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                current = await ElementInstanceService._get_owned(cur, instance_uuid, user)
                # Fogs on the other end of this instance's routes lose a route too
                await cur.execute(
                    """
                    SELECT DISTINCT ei.fog_uuid
                    FROM fogcontroller.routings r
                    JOIN fogcontroller.element_instances ei
                        ON ei.uuid IN (r.publishing_instance_uuid, r.destination_instance_uuid)
                    WHERE %(uuid)s IN (r.publishing_instance_uuid, r.destination_instance_uuid)
                    """,
                    {"uuid": instance_uuid}
                )
                routed_fogs = [row["fog_uuid"] for row in await cur.fetchall() or []]
                await cur.execute("DELETE FROM fogcontroller.element_instances WHERE uuid = %(uuid)s", {"uuid": instance_uuid})
                await ChangeTrackingService.bump(cur, [current["fog_uuid"]], "container_list", "container_config")
                await ChangeTrackingService.bump(cur, routed_fogs, "routing")
                await conn.commit()
        logger.info(f"Deleted element instance {instance_uuid}")

    @staticmethod
    async def create_comsat_pipe(instance_uuid: str, user: UserEntry) -> ComsatPipe:
        """Open a public pipe for the instance on the next free port."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                current = await ElementInstanceService._get_owned(cur, instance_uuid, user)
                await cur.execute(
                    "SELECT COALESCE(MAX(port) + 1, %(first)s) AS port FROM fogcontroller.satellite_pipes",
                    {"first": COMSAT_FIRST_PORT}
                )
                port = (await cur.fetchone())["port"]
                try:
                    await cur.execute(
                        """
                        INSERT INTO fogcontroller.satellite_pipes (element_instance_uuid, passcode, port)
                        VALUES (%(uuid)s, %(passcode)s, %(port)s)
                        RETURNING element_instance_uuid, passcode, port
                        """,
                        {"uuid": instance_uuid, "passcode": generate_random_string(PASSCODE_LENGTH), "port": port}
                    )
                except pg_errors.UniqueViolation as e:
                    # Two pipes created at once can both read the same MAX(port)
                    if e.diag.constraint_name == PIPE_PORT_CONSTRAINT:
                        raise ConflictError(f"Comsat port {port} was taken by another pipe, try again")
                    raise ConflictError(f"Element instance {instance_uuid} already has a comsat pipe")
                row = await cur.fetchone()
                await ChangeTrackingService.bump(cur, [current["fog_uuid"]], "routing")
                await conn.commit()
        return ComsatPipe(**row)

    @staticmethod
    async def delete_comsat_pipe(instance_uuid: str, user: UserEntry) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                current = await ElementInstanceService._get_owned(cur, instance_uuid, user)
                await cur.execute(
                    "DELETE FROM fogcontroller.satellite_pipes WHERE element_instance_uuid = %(uuid)s",
                    {"uuid": instance_uuid}
                )
                if cur.rowcount == 0:
                    raise NotFoundError(f"Element instance {instance_uuid} has no comsat pipe")
                await ChangeTrackingService.bump(cur, [current["fog_uuid"]], "routing")
                await conn.commit()

    @staticmethod
    async def create_port(request: PortCreateRequest, user: UserEntry) -> ElementInstanceEntry:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                current = await ElementInstanceService._get_owned(cur, request.instance_id, user)
                # External ports are shared by every container on the fog
                await cur.execute(
                    """
                    SELECT p.element_instance_uuid
                    FROM fogcontroller.element_instance_ports p
                    JOIN fogcontroller.element_instances ei ON ei.uuid = p.element_instance_uuid
                    WHERE p.port_external = %(external)s
                      AND (ei.uuid = %(uuid)s OR (%(fog_uuid)s::text IS NOT NULL AND ei.fog_uuid = %(fog_uuid)s))
                    """,
                    {"external": request.port_external, "uuid": request.instance_id, "fog_uuid": current["fog_uuid"]}
                )
                if await cur.fetchone():
                    raise ConflictError(f"External port {request.port_external} is already in use")
                await cur.execute(
                    """
                    INSERT INTO fogcontroller.element_instance_ports (element_instance_uuid, port_internal, port_external)
                    VALUES (%(uuid)s, %(internal)s, %(external)s)
                    """,
                    {"uuid": request.instance_id, "internal": request.port_internal, "external": request.port_external}
                )
                await ChangeTrackingService.bump(cur, [current["fog_uuid"]], "container_list")
                row = await ElementInstanceService._get_owned(cur, request.instance_id, user)
                await conn.commit()
        return ElementInstanceEntry(**row)

    @staticmethod
    async def delete_port(request: PortDeleteRequest, user: UserEntry) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                current = await ElementInstanceService._get_owned(cur, request.instance_id, user)
                await cur.execute(
                    """
                    DELETE FROM fogcontroller.element_instance_ports
                    WHERE element_instance_uuid = %(uuid)s AND port_internal = %(internal)s
                    """,
                    {"uuid": request.instance_id, "internal": request.port_internal}
                )
                if cur.rowcount == 0:
                    raise NotFoundError(f"No port mapping for internal port {request.port_internal}")
                await ChangeTrackingService.bump(cur, [current["fog_uuid"]], "container_list")
                await conn.commit()
