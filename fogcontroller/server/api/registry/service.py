from __future__ import annotations

from typing import List, Optional

from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import NotFoundError, ValidationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.change_tracking.service import ChangeTrackingService
from fogcontroller.server.api.user.schema import UserEntry
from .schema import RegistryEntry, RegistryPayload

logger = setup_logger(__name__, include_location=True)

_REGISTRY_COLUMNS = "id, url, is_public, secure, certificate, requires_cert, username, password, user_email, user_id"


class RegistryService:
    """Docker registries available to a user's fog instances."""

    @staticmethod
    async def create_registry(registry: RegistryPayload, user: UserEntry) -> RegistryEntry:
        if not registry.url:
            raise ValidationError("Registry url is required")
        if registry.requires_cert and not registry.certificate:
            raise ValidationError("Registry certificate is required when --requires-cert is set")

        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    INSERT INTO fogcontroller.registries
                        (url, is_public, secure, certificate, requires_cert, username, password, user_email, user_id)
                    VALUES
                        (%(url)s, %(is_public)s, %(secure)s, %(certificate)s, %(requires_cert)s,
                         %(username)s, %(password)s, %(user_email)s, %(user_id)s)
                    RETURNING {_REGISTRY_COLUMNS}
                    """,
                    {
                        "url": registry.url,
                        "is_public": bool(registry.is_public),
                        "secure": True if registry.secure is None else registry.secure,
                        "certificate": registry.certificate,
                        "requires_cert": bool(registry.requires_cert),
                        "username": registry.username,
                        "password": registry.password,
                        "user_email": registry.user_email,
                        "user_id": user.id,
                    }
                )
                row = await cur.fetchone()
                await ChangeTrackingService.bump_user_fogs(cur, user.id, "registries")
                await conn.commit()
        return RegistryEntry(**row)

    @staticmethod
    async def update_registry(registry_id: int, registry: RegistryPayload, user: Optional[UserEntry] = None) -> RegistryEntry:
        changes = registry.model_dump(exclude_none=True)
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                params = {**changes, "id": registry_id}
                where = "id = %(id)s"
                if user is not None:
                    where += " AND user_id = %(user_id)s"
                    params["user_id"] = user.id
                if changes:
                    assignments = ", ".join(f"{column} = %({column})s" for column in changes)
                    await cur.execute(
                        f"UPDATE fogcontroller.registries SET {assignments} WHERE {where} RETURNING {_REGISTRY_COLUMNS}",
                        params
                    )
                else:
                    await cur.execute(f"SELECT {_REGISTRY_COLUMNS} FROM fogcontroller.registries WHERE {where}", params)
                row = await cur.fetchone()
                if row is None:
                    raise NotFoundError(f"Invalid registry id {registry_id}")
                if changes and row["user_id"] is not None:
                    await ChangeTrackingService.bump_user_fogs(cur, row["user_id"], "registries")
                await conn.commit()
        return RegistryEntry(**row)

    @staticmethod
    async def delete_registry(registry_id: int, user: Optional[UserEntry] = None) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                params = {"id": registry_id}
                where = "id = %(id)s"
                if user is not None:
                    where += " AND user_id = %(user_id)s"
                    params["user_id"] = user.id
                await cur.execute(f"DELETE FROM fogcontroller.registries WHERE {where} RETURNING user_id", params)
                row = await cur.fetchone()
                if row is None:
                    raise NotFoundError(f"Invalid registry id {registry_id}")
                if row["user_id"] is not None:
                    await ChangeTrackingService.bump_user_fogs(cur, row["user_id"], "registries")
                await conn.commit()

    @staticmethod
    async def list_registries(user: Optional[UserEntry] = None) -> List[RegistryEntry]:
        """All registries for the CLI, otherwise the user's own plus public ones."""
        query = f"SELECT {_REGISTRY_COLUMNS} FROM fogcontroller.registries"
        params: dict = {}
        if user is not None:
            query += " WHERE is_public OR user_id = %(user_id)s"
            params["user_id"] = user.id
        query += " ORDER BY id"
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                rows = await cur.fetchall() or []
                return [RegistryEntry(**row) for row in rows]

    @staticmethod
    async def registry_exists(registry_id: int) -> bool:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1 FROM fogcontroller.registries WHERE id = %(id)s", {"id": registry_id})
                return await cur.fetchone() is not None
