# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Database access layer
# PURPOSE: Shared PostgreSQL pool and table identifiers
# CREATED: 17 OCT 2026
# ============================================================================
"""
Repositories Module

Provides the async PostgreSQL pool used by the PG checkpoint adapter and
the PG health probes.

Usage:
    from repositories import get_pool, close_pool

    pool = await get_pool()
    adapter = PostgresCheckpointAdapter(pool)
    ...
    await close_pool()
"""

from .database import (
    PoolSettings,
    get_pool,
    init_pool,
    close_pool,
    TABLE_CHECKPOINTS,
)

__all__ = [
    "PoolSettings",
    "get_pool",
    "init_pool",
    "close_pool",
    "TABLE_CHECKPOINTS",
]
