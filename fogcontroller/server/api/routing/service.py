from __future__ import annotations

from typing import Dict, List

from psycopg import errors as pg_errors

from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import ConflictError, NotFoundError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.user.schema import UserEntry
from .schema import FogRoute, RouteEntry, RouteRequest

logger = setup_logger(__name__, include_location=True)


class RoutingService:
    """Message routes between element instances."""

    @staticmethod
    async def _instances(cur, request: RouteRequest, user: UserEntry) -> Dict[str, dict]:
        uuids = [request.publishing_instance_id, request.destination_instance_id]
        await cur.execute(
            """
            SELECT uuid, fog_uuid, track_id FROM fogcontroller.element_instances
            WHERE uuid = ANY(%(uuids)s) AND user_id = %(user_id)s
            """,
            {"uuids": uuids, "user_id": user.id}
        )
        found = {row["uuid"]: row for row in await cur.fetchall() or []}
        for uuid in uuids:
            if uuid not in found:
                raise NotFoundError(f"Invalid element instance id {uuid}")
        return found

    @staticmethod
    async def create_route(request: RouteRequest, user: UserEntry) -> RouteEntry:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                instances = await RoutingService._instances(cur, request, user)
                publisher = instances[request.publishing_instance_id]
                destination = instances[request.destination_instance_id]
                try:
                    await cur.execute(
                        """
                        INSERT INTO fogcontroller.routings
                            (publishing_instance_uuid, destination_instance_uuid, track_id, is_network_connection)
                        VALUES (%(publisher)s, %(destination)s, %(track_id)s, %(network)s)
                        RETURNING id, publishing_instance_uuid, destination_instance_uuid, track_id, is_network_connection
                        """,
                        {
                            "publisher": publisher["uuid"],
                            "destination": destination["uuid"],
                            "track_id": publisher["track_id"],
                            "network": publisher["fog_uuid"] != destination["fog_uuid"],
                        }
                    )
                except pg_errors.UniqueViolation:
                    raise ConflictError(
                        f"Route from {publisher['uuid']} to {destination['uuid']} already exists"
                    )
                row = await cur.fetchone()
                await ChangeTrackingService.bump(cur, [publisher["fog_uuid"], destination["fog_uuid"]], "routing")
                await conn.commit()
        logger.info(f"Created route {row['publishing_instance_uuid']} -> {row['destination_instance_uuid']}")
        return RouteEntry(**row)

    @staticmethod
    async def delete_route(request: RouteRequest, user: UserEntry) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                instances = await RoutingService._instances(cur, request, user)
                await cur.execute(
                    """
                    DELETE FROM fogcontroller.routings
                    WHERE publishing_instance_uuid = %(publisher)s AND destination_instance_uuid = %(destination)s
                    """,
                    {"publisher": request.publishing_instance_id, "destination": request.destination_instance_id}
                )
                if cur.rowcount == 0:
                    raise NotFoundError(
                        f"No route from {request.publishing_instance_id} to {request.destination_instance_id}"
                    )
                await ChangeTrackingService.bump(cur, [row["fog_uuid"] for row in instances.values()], "routing")
                await conn.commit()

    @staticmethod
    async def get_fog_routing(fog_uuid: str) -> List[FogRoute]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT r.publishing_instance_uuid, r.destination_instance_uuid
                    FROM fogcontroller.routings r
                    JOIN fogcontroller.element_instances p ON p.uuid = r.publishing_instance_uuid
                    WHERE p.fog_uuid = %(uuid)s
                    ORDER BY r.publishing_instance_uuid, r.id
                    """,
                    {"uuid": fog_uuid}
                )
                rows = await cur.fetchall() or []
        routes: Dict[str, List[str]] = {}
        for row in rows:
            routes.setdefault(row["publishing_instance_uuid"], []).append(row["destination_instance_uuid"])
        return [FogRoute(container=container, receivers=receivers) for container, receivers in routes.items()]
