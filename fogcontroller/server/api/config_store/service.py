"""
Key/value config store kept in the `config` table.

The server reads port and TLS file paths from here first, falling back to the
config file and environment.
"""
from __future__ import annotations

from typing import Dict

import psycopg
from psycopg.rows import dict_row

from fogcontroller.core.db.pool import get_pool_connection
from fogcontroller.core.errors import NotFoundError, ValidationError
from fogcontroller.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)

CONFIG_KEYS = ("port", "ssl_key", "ssl_cert", "intermediate_cert")


def normalize_key(key: str) -> str:
    normalized = key.strip().lower().replace("-", "_")
    if normalized not in CONFIG_KEYS:
        raise ValidationError(f"Unknown config key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")
    return normalized


class ConfigService:

    @staticmethod
    async def set_value(key: str, value: str) -> Dict[str, str]:
        key = normalize_key(key)
        if key == "port" and not str(value).isdigit():
            raise ValidationError(f"Port must be numeric, got '{value}'")
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO fogcontroller.config (key, value) VALUES (%(key)s, %(value)s)
                    ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
                    """,
                    {"key": key, "value": str(value)}
                )
                await conn.commit()
        logger.info(f"Config key {key} updated")
        return {key: str(value)}

    @staticmethod
    async def get_value(key: str) -> str:
        key = normalize_key(key)
        values = await ConfigService.list_values()
        if key not in values:
            raise NotFoundError(f"Config key {key} is not set")
        return values[key]

    @staticmethod
    async def list_values() -> Dict[str, str]:
        async with get_pool_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT key, value FROM fogcontroller.config ORDER BY key")
                rows = await cur.fetchall() or []
        return {row["key"]: row["value"] for row in rows}

    @staticmethod
    def load_values_sync(conninfo: str) -> Dict[str, str]:
        """Read the store before the event loop and pool exist (server startup)."""
        with psycopg.connect(conninfo, row_factory=dict_row, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT key, value FROM fogcontroller.config")
                return {row["key"]: row["value"] for row in cur.fetchall()}
