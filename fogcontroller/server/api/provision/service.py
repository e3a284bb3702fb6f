"""
Provisioning keys.

A key is a short one-time secret an operator types into a new agent. The
agent trades it for its fog uuid and a fresh access token.
"""
from __future__ import annotations

import string
from typing import Optional

from fogcontroller.core.common import generate_access_token, generate_random_string, now_ms
from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import AuthenticationError, NotFoundError, ValidationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.user.schema import UserEntry
from .schema import ProvisionKey, ProvisionResult

logger = setup_logger(__name__, include_location=True)

PROVISION_KEY_LENGTH = 8
PROVISION_KEY_TTL_MS = 20 * 60 * 1000
_KEY_ALPHABET = string.ascii_letters + string.digits


class ProvisionService:

    @staticmethod
    async def issue_key(fog_uuid: str, user: Optional[UserEntry] = None) -> ProvisionKey:
        """Replace any outstanding key of the fog with a new one. Without a user (CLI) any fog qualifies."""
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT 1 FROM fogcontroller.fogs WHERE uuid = %(uuid)s AND (%(user_id)s::int IS NULL OR user_id = %(user_id)s)",
                    {"uuid": fog_uuid, "user_id": user.id if user else None}
                )
                if await cur.fetchone() is None:
                    raise NotFoundError(f"Invalid fog instance id {fog_uuid}")
                await cur.execute("DELETE FROM fogcontroller.provision_keys WHERE fog_uuid = %(uuid)s", {"uuid": fog_uuid})
                key = ProvisionKey(
                    key=generate_random_string(PROVISION_KEY_LENGTH, _KEY_ALPHABET),
                    expiration_time=now_ms() + PROVISION_KEY_TTL_MS,
                )
                await cur.execute(
                    """
                    INSERT INTO fogcontroller.provision_keys (provisioning_string, expiration_time, fog_uuid)
                    VALUES (%(key)s, %(expiration_time)s, %(uuid)s)
                    """,
                    {"key": key.key, "expiration_time": key.expiration_time, "uuid": fog_uuid}
                )
                await conn.commit()
        logger.info(f"Issued provisioning key for fog {fog_uuid}")
        return key

    @staticmethod
    async def provision(provision_key: str, fog_type_id: int) -> ProvisionResult:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT k.id, k.expiration_time, k.fog_uuid, f.fog_type_id
                    FROM fogcontroller.provision_keys k
                    JOIN fogcontroller.fogs f ON f.uuid = k.fog_uuid
                    WHERE k.provisioning_string = %(key)s
                    """,
                    {"key": provision_key}
                )
                row = await cur.fetchone()
                if row is None:
                    raise NotFoundError("Invalid provisioning key")
                if row["expiration_time"] < now_ms():
                    await cur.execute("DELETE FROM fogcontroller.provision_keys WHERE id = %(id)s", {"id": row["id"]})
                    await conn.commit()
                    raise AuthenticationError("Expired provisioning key")

                await cur.execute("SELECT 1 FROM fogcontroller.fog_types WHERE id = %(id)s", {"id": fog_type_id})
                if await cur.fetchone() is None:
                    raise ValidationError(f"Invalid fog type {fog_type_id}")

                token = generate_access_token()
                await cur.execute(
                    """
                    UPDATE fogcontroller.fogs SET access_token = %(token)s, fog_type_id = %(fog_type_id)s, updated_at = now()
                    WHERE uuid = %(uuid)s
                    """,
                    {"token": token, "fog_type_id": fog_type_id, "uuid": row["fog_uuid"]}
                )
                if row["fog_type_id"] != fog_type_id:
                    # Images differ per fog type
                    await ChangeTrackingService.bump(cur, [row["fog_uuid"]], "container_list")
                await cur.execute("DELETE FROM fogcontroller.provision_keys WHERE id = %(id)s", {"id": row["id"]})
                await conn.commit()
        logger.info(f"Provisioned fog {row['fog_uuid']} as fog type {fog_type_id}")
        return ProvisionResult(id=row["fog_uuid"], token=token)

    @staticmethod
    async def delete_key(provision_key: str, user: UserEntry) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    DELETE FROM fogcontroller.provision_keys k
                    USING fogcontroller.fogs f
                    WHERE f.uuid = k.fog_uuid AND k.provisioning_string = %(key)s AND f.user_id = %(user_id)s
                    """,
                    {"key": provision_key, "user_id": user.id}
                )
                if cur.rowcount == 0:
                    raise NotFoundError("Invalid provisioning key")
                await conn.commit()
