from __future__ import annotations

from typing import Any, Dict, List, Optional

from fogcontroller.core.common import now_ms
from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import NotFoundError, ValidationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.user.schema import UserEntry
from .schema import FogTrackUpdateRequest, TrackEntry, UserTrackUpdateRequest

logger = setup_logger(__name__, include_location=True)

_TRACK_COLUMNS = "id, name, description, last_updated, permissions, is_selected, is_activated, user_id, fog_uuid"


class TrackService:
    """Data tracks group element instances of one user."""

    @staticmethod
    async def _get_owned(cur, track_id: int, user: UserEntry) -> Dict[str, Any]:
        await cur.execute(
            f"SELECT {_TRACK_COLUMNS} FROM fogcontroller.data_tracks WHERE id = %(id)s AND user_id = %(user_id)s",
            {"id": track_id, "user_id": user.id}
        )
        row = await cur.fetchone()
        if row is None:
            raise NotFoundError(f"Invalid track id {track_id}")
        return row

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
    async def _instance_fogs(cur, track_id: int) -> List[str]:
        await cur.execute(
            "SELECT DISTINCT fog_uuid FROM fogcontroller.element_instances WHERE track_id = %(id)s AND fog_uuid IS NOT NULL",
            {"id": track_id}
        )
        return [row["fog_uuid"] for row in await cur.fetchall() or []]

    @staticmethod
    async def list_fog_tracks(fog_uuid: str, user: UserEntry) -> List[TrackEntry]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await TrackService._check_fog(cur, fog_uuid, user)
                await cur.execute(
                    f"""
                    SELECT {_TRACK_COLUMNS} FROM fogcontroller.data_tracks
                    WHERE user_id = %(user_id)s AND (
                        fog_uuid = %(uuid)s
                        OR id IN (SELECT track_id FROM fogcontroller.element_instances WHERE fog_uuid = %(uuid)s)
                    )
                    ORDER BY id
                    """,
                    {"uuid": fog_uuid, "user_id": user.id}
                )
                rows = await cur.fetchall() or []
                return [TrackEntry(**row) for row in rows]

    @staticmethod
    async def update_user_track(request: UserTrackUpdateRequest, user: UserEntry) -> TrackEntry:
        changes = request.model_dump(exclude_none=True, exclude={"track_id"})
        changes["last_updated"] = now_ms()
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await TrackService._check_fog(cur, request.fog_uuid, user)
                if request.track_id is None:
                    if not request.name:
                        raise ValidationError("Track name is required")
                    values = {**changes, "user_id": user.id}
                    columns = ", ".join(values)
                    placeholders = ", ".join(f"%({column})s" for column in values)
                    await cur.execute(
                        f"INSERT INTO fogcontroller.data_tracks ({columns}) VALUES ({placeholders}) RETURNING {_TRACK_COLUMNS}",
                        values
                    )
                    row = await cur.fetchone()
                else:
                    await TrackService._get_owned(cur, request.track_id, user)
                    assignments = ", ".join(f"{column} = %({column})s" for column in changes)
                    await cur.execute(
                        f"UPDATE fogcontroller.data_tracks SET {assignments} WHERE id = %(id)s RETURNING {_TRACK_COLUMNS}",
                        {**changes, "id": request.track_id}
                    )
                    row = await cur.fetchone()
                    if "is_activated" in changes:
                        fogs = await TrackService._instance_fogs(cur, request.track_id)
                        await ChangeTrackingService.bump(cur, fogs, "container_list")
                await conn.commit()
        return TrackEntry(**row)

    @staticmethod
    async def update_fog_track(request: FogTrackUpdateRequest, user: UserEntry) -> TrackEntry:
        """Attach the track to a fog, optionally switching it on or off."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                current = await TrackService._get_owned(cur, request.track_id, user)
                await TrackService._check_fog(cur, request.instance_id, user)
                changes: Dict[str, Any] = {"fog_uuid": request.instance_id, "last_updated": now_ms()}
                if request.is_activated is not None:
                    changes["is_activated"] = request.is_activated
                assignments = ", ".join(f"{column} = %({column})s" for column in changes)
                await cur.execute(
                    f"UPDATE fogcontroller.data_tracks SET {assignments} WHERE id = %(id)s RETURNING {_TRACK_COLUMNS}",
                    {**changes, "id": request.track_id}
                )
                row = await cur.fetchone()
                fogs = await TrackService._instance_fogs(cur, request.track_id)
                await ChangeTrackingService.bump(cur, [*fogs, current["fog_uuid"], request.instance_id], "container_list")
                await conn.commit()
        return TrackEntry(**row)

    @staticmethod
    async def delete_track(track_id: int, user: UserEntry) -> None:
        """Delete the track and, through the cascade, its element instances."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await TrackService._get_owned(cur, track_id, user)
                fogs = await TrackService._instance_fogs(cur, track_id)
                await cur.execute("DELETE FROM fogcontroller.data_tracks WHERE id = %(id)s", {"id": track_id})
                await ChangeTrackingService.bump(cur, fogs, "container_list", "container_config", "routing")
                await conn.commit()
        logger.info(f"Deleted track {track_id}")
