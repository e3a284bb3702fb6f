"""
User storage service.

Users own catalog items, registries, fog instances and tracks. The access
token stored on the user row authenticates authoring requests.
"""
from __future__ import annotations

import hashlib
import secrets
from typing import List, Optional

from psycopg import errors as pg_errors

from fogcontroller.core.common import generate_access_token
from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import ConflictError, NotFoundError
from fogcontroller.core.logger import setup_logger
from .schema import UserCreateRequest, UserEntry, UserUpdateRequest

logger = setup_logger(__name__, include_location=True)

_USER_COLUMNS = "id, first_name, last_name, email, access_token, created_at"


def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(8)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), 100_000)
    return f"{salt}${digest.hex()}"


class UserService:

    @staticmethod
    async def _fetch_one(where: str, params: dict) -> Optional[UserEntry]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(f"SELECT {_USER_COLUMNS} FROM fogcontroller.users WHERE {where}", params)
                row = await cur.fetchone()
                return UserEntry(**row) if row else None

    @staticmethod
    async def get_user_by_token(token: str) -> Optional[UserEntry]:
        if not token:
            return None
        return await UserService._fetch_one("access_token = %(token)s", {"token": token})

    @staticmethod
    async def get_user_by_id(user_id: int) -> Optional[UserEntry]:
        return await UserService._fetch_one("id = %(id)s", {"id": user_id})

    @staticmethod
    async def get_user_by_email(email: str) -> Optional[UserEntry]:
        return await UserService._fetch_one("email = %(email)s", {"email": email.strip().lower()})

    @staticmethod
    async def create_user(request: UserCreateRequest) -> UserEntry:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                try:
                    await cur.execute(
                        f"""
                        INSERT INTO fogcontroller.users (first_name, last_name, email, password, access_token)
                        VALUES (%(first_name)s, %(last_name)s, %(email)s, %(password)s, %(access_token)s)
                        RETURNING {_USER_COLUMNS}
                        """,
                        {
                            "first_name": request.first_name,
                            "last_name": request.last_name,
                            "email": request.email,
                            "password": hash_password(request.password),
                            "access_token": generate_access_token(),
                        }
                    )
                except pg_errors.UniqueViolation:
                    raise ConflictError(f"Registration failed: There is already an account associated with your email address {request.email}")
                row = await cur.fetchone()
                await conn.commit()
        logger.info(f"Created user {row['id']} ({row['email']})")
        return UserEntry(**row)

    @staticmethod
    async def update_user(user_id: int, request: UserUpdateRequest) -> UserEntry:
        changes = request.model_dump(exclude_none=True)
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])
        if not changes:
            user = await UserService.get_user_by_id(user_id)
            if user is None:
                raise NotFoundError(f"Invalid user id {user_id}")
            return user

        assignments = ", ".join(f"{column} = %({column})s" for column in changes)
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"UPDATE fogcontroller.users SET {assignments}, updated_at = now() "
                    f"WHERE id = %(id)s RETURNING {_USER_COLUMNS}",
                    {**changes, "id": user_id}
                )
                row = await cur.fetchone()
                if row is None:
                    raise NotFoundError(f"Invalid user id {user_id}")
                await conn.commit()
        return UserEntry(**row)

    @staticmethod
    async def generate_token(user_id: int) -> str:
        """Rotate the user's access token and return the new one."""
        token = generate_access_token()
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "UPDATE fogcontroller.users SET access_token = %(token)s, updated_at = now() WHERE id = %(id)s",
                    {"token": token, "id": user_id}
                )
                if cur.rowcount == 0:
                    raise NotFoundError(f"Invalid user id {user_id}")
                await conn.commit()
        return token

    @staticmethod
    async def delete_user(user_id: int) -> None:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM fogcontroller.users WHERE id = %(id)s", {"id": user_id})
                if cur.rowcount == 0:
                    raise NotFoundError(f"Invalid user id {user_id}")
                await conn.commit()

    @staticmethod
    async def list_users() -> List[UserEntry]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(f"SELECT {_USER_COLUMNS} FROM fogcontroller.users ORDER BY id")
                rows = await cur.fetchall() or []
                return [UserEntry(**row) for row in rows]
