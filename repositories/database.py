# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Shared psycopg3 pool for PG checkpoints and PG health probes
# CREATED: 17 OCT 2026
# ============================================================================
"""
Database Connection Pool

One AsyncConnectionPool per process, shared by PostgresCheckpointAdapter
and the PostgreSQL health probes. The pool is opened lazily by get_pool()
and must be closed by the owner with close_pool().

Environment:
    DATABASE_URL                 full conninfo (wins over the parts below)
    POSTGRES_HOST / _PORT / _DB / _USER / _PASSWORD / _SSLMODE
    BACKFILL_PG_POOL_MIN / BACKFILL_PG_POOL_MAX   pool bounds (1 / 5)
    BACKFILL_SCHEMA              schema of the checkpoint table (public)

Usage:
    pool = await get_pool()
    probes = postgres_probes(pool)
    checkpoints = PostgresCheckpointAdapter(pool)
    ...
    await close_pool()
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from psycopg import sql
from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolSettings:
    """Connection target and pool bounds."""
    conninfo: str
    min_size: int = 1
    max_size: int = 5

    @classmethod
    def from_env(cls) -> "PoolSettings":
        return cls(
            conninfo=get_connection_string(),
            min_size=int(os.getenv("BACKFILL_PG_POOL_MIN", 1)),
            max_size=int(os.getenv("BACKFILL_PG_POOL_MAX", 5)),
        )


def get_connection_string() -> str:
    """DATABASE_URL, else a URL assembled from the POSTGRES_* variables."""
    url = os.environ.get("DATABASE_URL")
    if url:
        return url

    env = os.environ.get
    return (
        f"postgresql://{env('POSTGRES_USER', 'postgres')}:{env('POSTGRES_PASSWORD', '')}"
        f"@{env('POSTGRES_HOST', 'localhost')}:{env('POSTGRES_PORT', '5432')}"
        f"/{env('POSTGRES_DB', 'postgres')}?sslmode={env('POSTGRES_SSLMODE', 'prefer')}"
    )


def mask_conninfo(conninfo: str) -> str:
    """Strip credentials from a connection string for logging."""
    if "@" in conninfo:
        return conninfo.rsplit("@", 1)[-1]
    if "password=" in conninfo:
        head, _, tail = conninfo.partition("password=")
        _, _, rest = tail.partition(" ")
        return f"{head}password=*** {rest}".rstrip()
    return conninfo


# ============================================================================
# GLOBAL POOL
# ============================================================================

_pool: Optional[AsyncConnectionPool] = None


async def init_pool(settings: Optional[PoolSettings] = None) -> AsyncConnectionPool:
    """
    Open the global pool.

    Args:
        settings: Connection and bounds (defaults to PoolSettings.from_env())

    Returns:
        The open pool; an already open pool is returned unchanged
    """
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, keeping the existing pool")
        return _pool

    settings = settings or PoolSettings.from_env()
    logger.info(
        f"Opening connection pool to {mask_conninfo(settings.conninfo)} "
        f"(min={settings.min_size}, max={settings.max_size})"
    )
    pool = AsyncConnectionPool(
        conninfo=settings.conninfo,
        min_size=settings.min_size,
        max_size=settings.max_size,
        open=False,
    )
    await pool.open()
    _pool = pool
    return _pool


async def get_pool() -> AsyncConnectionPool:
    """Global pool, opened from the environment on first use."""
    if _pool is None:
        return await init_pool()
    return _pool


async def close_pool() -> None:
    """Close the global pool if it is open."""
    global _pool

    if _pool is None:
        return
    pool, _pool = _pool, None
    await pool.close()
    logger.info("Connection pool closed")


# ============================================================================
# TABLES
# ============================================================================

SCHEMA = os.environ.get("BACKFILL_SCHEMA", "public")

# Compose with sql.SQL(...).format(table=TABLE_CHECKPOINTS)
TABLE_CHECKPOINTS = sql.Identifier(SCHEMA, "backfill_checkpoints")


__all__ = [
    "PoolSettings",
    "get_connection_string",
    "mask_conninfo",
    "init_pool",
    "get_pool",
    "close_pool",
    "SCHEMA",
    "TABLE_CHECKPOINTS",
]
