from __future__ import annotations

from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import NotFoundError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.user.schema import UserEntry
from .schema import StreamViewerAccess

logger = setup_logger(__name__, include_location=True)


class ViewerService:

    @staticmethod
    async def get_viewer_access(fog_uuid: str, user: UserEntry) -> StreamViewerAccess:
        """Stream viewer endpoint and token of a fog owned by the user."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT sv.api_base_url, sv.access_token, sv.element_instance_uuid AS element_id
                    FROM fogcontroller.stream_viewers sv
                    JOIN fogcontroller.fogs f ON f.uuid = sv.fog_uuid
                    WHERE sv.fog_uuid = %(uuid)s AND f.user_id = %(user_id)s
                    """,
                    {"uuid": fog_uuid, "user_id": user.id}
                )
                row = await cur.fetchone()
        if row is None:
            raise NotFoundError(f"No stream viewer for fog instance {fog_uuid}")
        return StreamViewerAccess(**row)
