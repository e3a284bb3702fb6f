"""
Process-wide Postgres connection pool.

The server opens it in the app lifespan, the CLI around each dispatched
command. Services borrow connections with `get_pool_connection()`; rows come
back as dicts.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from psycopg import AsyncConnection
from psycopg.rows import DictRow, dict_row
from psycopg_pool import AsyncConnectionPool

from fogcontroller.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)

_pool: Optional[AsyncConnectionPool] = None
_lock = asyncio.Lock()


async def init_pool(conninfo: str, min_size: int = 1, max_size: int = 10) -> None:
    """Open the pool if it is not open yet."""
    global _pool
    async with _lock:
        if _pool is not None:
            return
        pool = AsyncConnectionPool(
            conninfo,
            min_size=min_size,
            max_size=max_size,
            timeout=10,
            kwargs={"row_factory": dict_row},
            name="fogcontroller",
            open=False,
        )
        await pool.open(wait=True)
        _pool = pool
        logger.debug(f"Database pool opened ({min_size}..{max_size} connections)")


def get_pool() -> AsyncConnectionPool[AsyncConnection[DictRow]]:
    if _pool is None:
        raise RuntimeError("Database pool is not initialized. Call init_pool() first.")
    return _pool


@asynccontextmanager
async def get_pool_connection() -> AsyncIterator[AsyncConnection[DictRow]]:
    """Borrow a connection; work not committed by the block is rolled back on return."""
    async with get_pool().connection() as conn:
        yield conn


async def close_pool() -> None:
    global _pool
    async with _lock:
        if _pool is None:
            return
        pool, _pool = _pool, None
        await pool.close()
        logger.debug("Database pool closed")
