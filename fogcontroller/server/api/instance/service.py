"""
Queries answering the fog agent's polling endpoints.

The agent asks for its container list, container configs, registries and
routes whenever change tracking says the area changed.
"""
from __future__ import annotations

from typing import List

from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.fog.schema import FogEntry
from .schema import AgentRegistry, Container, ContainerConfig

logger = setup_logger(__name__, include_location=True)


class InstanceService:

    @staticmethod
    async def get_container_configs(fog: FogEntry) -> List[ContainerConfig]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT uuid AS id, config_last_updated AS last_updated, config
                    FROM fogcontroller.element_instances
                    WHERE fog_uuid = %(uuid)s
                    ORDER BY created_at, uuid
                    """,
                    {"uuid": fog.uuid}
                )
                rows = await cur.fetchall() or []
                return [ContainerConfig(**row) for row in rows]

    @staticmethod
    async def get_container_list(fog: FogEntry) -> List[Container]:
        """Element instances deployed on the fog, with the image built for its fog type."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT
                        ei.uuid AS id,
                        img.container_image AS image_id,
                        reg.url AS registry_url,
                        (EXTRACT(EPOCH FROM ei.updated_at) * 1000)::bigint AS last_modified,
                        ei.rebuild,
                        ei.root_host_access,
                        ei.log_size,
                        COALESCE((
                            SELECT json_agg(json_build_object('outsidePort', p.port_external, 'insidePort', p.port_internal)
                                            ORDER BY p.id)
                            FROM fogcontroller.element_instance_ports p
                            WHERE p.element_instance_uuid = ei.uuid
                        ), '[]'::json) AS port_mappings
                    FROM fogcontroller.element_instances ei
                    LEFT JOIN fogcontroller.catalog_items ci ON ci.id = ei.catalog_item_id
                    LEFT JOIN fogcontroller.catalog_item_images img
                        ON img.catalog_item_id = ci.id AND img.fog_type_id = %(fog_type_id)s
                    LEFT JOIN fogcontroller.registries reg ON reg.id = ci.registry_id
                    WHERE ei.fog_uuid = %(uuid)s
                    ORDER BY ei.created_at, ei.uuid
                    """,
                    {"uuid": fog.uuid, "fog_type_id": fog.fog_type_id}
                )
                rows = await cur.fetchall() or []
                containers = [Container(**row) for row in rows]

                # Rebuild is a one-shot request; the agent has now seen it
                rebuilt = [container.id for container in containers if container.rebuild]
                if rebuilt:
                    await cur.execute(
                        "UPDATE fogcontroller.element_instances SET rebuild = false WHERE uuid = ANY(%(uuids)s)",
                        {"uuids": rebuilt}
                    )
                    await conn.commit()
                return containers

    @staticmethod
    async def get_registries(fog: FogEntry) -> List[AgentRegistry]:
        """Public registries plus the ones owned by the fog's user."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT id, url, secure, certificate, requires_cert, username, password, user_email
                    FROM fogcontroller.registries
                    WHERE is_public OR user_id IS NOT DISTINCT FROM %(user_id)s
                    ORDER BY id
                    """,
                    {"user_id": fog.user_id}
                )
                rows = await cur.fetchall() or []
                return [AgentRegistry(**row) for row in rows]
