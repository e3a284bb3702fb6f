"""
Change tracking for fog agents.

Every fog has one `change_tracking` row holding the epoch-millisecond time of
the last change per area. Agents poll `/instance/changes` with the time of
their previous poll and reload whatever changed since then.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from fogcontroller.core.common import now_ms
from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import NotFoundError, ValidationError
from fogcontroller.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)

TRACKED_COLUMNS = (
    "config",
    "reboot",
    "deletenode",
    "version",
    "container_list",
    "container_config",
    "routing",
    "registries",
)

# Response keys the agent expects for each column
CHANGE_KEYS = {
    "config": "config",
    "reboot": "reboot",
    "deletenode": "deletenode",
    "version": "version",
    "container_list": "containerlist",
    "container_config": "containerconfig",
    "routing": "routing",
    "registries": "registries",
}


def _check_columns(columns: Iterable[str]) -> list[str]:
    columns = list(columns)
    unknown = [column for column in columns if column not in TRACKED_COLUMNS]
    if unknown:
        raise ValidationError(f"Unknown change tracking columns: {', '.join(unknown)}")
    return columns


class ChangeTrackingService:

    @staticmethod
    async def create_for_fog(cur, fog_uuid: str) -> None:
        await cur.execute(
            "INSERT INTO fogcontroller.change_tracking (fog_uuid) VALUES (%(uuid)s) ON CONFLICT (fog_uuid) DO NOTHING",
            {"uuid": fog_uuid}
        )

    @staticmethod
    async def bump(cur, fog_uuids: Iterable[Optional[str]], *columns: str) -> int:
        """Stamp `columns` with the current time for the given fogs, inside the caller's transaction."""
        uuids = sorted({uuid for uuid in fog_uuids if uuid})
        if not uuids:
            return 0
        columns = _check_columns(columns)
        assignments = ", ".join(f"{column} = %(now)s" for column in columns)
        await cur.execute(
            f"UPDATE fogcontroller.change_tracking SET {assignments} WHERE fog_uuid = ANY(%(uuids)s)",
            {"now": now_ms(), "uuids": uuids}
        )
        logger.debug(f"Bumped {columns} for fogs {uuids}")
        return cur.rowcount

    @staticmethod
    async def bump_user_fogs(cur, user_id: int, *columns: str) -> int:
        """Stamp `columns` for every fog owned by the user."""
        columns = _check_columns(columns)
        assignments = ", ".join(f"{column} = %(now)s" for column in columns)
        await cur.execute(
            f"""
            UPDATE fogcontroller.change_tracking ct SET {assignments}
            FROM fogcontroller.fogs f
            WHERE f.uuid = ct.fog_uuid AND f.user_id = %(user_id)s
            """,
            {"now": now_ms(), "user_id": user_id}
        )
        return cur.rowcount

    @staticmethod
    async def get_changes(fog_uuid: str, timestamp: int) -> Dict[str, Any]:
        """Flags telling the agent which areas changed after `timestamp` (epoch ms)."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"SELECT {', '.join(TRACKED_COLUMNS)} FROM fogcontroller.change_tracking WHERE fog_uuid = %(uuid)s",
                    {"uuid": fog_uuid}
                )
                row = await cur.fetchone()
        if row is None:
            raise NotFoundError(f"No change tracking for fog {fog_uuid}")
        return {CHANGE_KEYS[column]: (row[column] or 0) > timestamp for column in TRACKED_COLUMNS}
