# ============================================================================
# POSTGRES CHECKPOINT ADAPTER
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Durable checkpoint storage
# PURPOSE: Persist batch state in a PostgreSQL JSONB table
# CREATED: 17 OCT 2026
# ============================================================================
"""
Postgres Checkpoint Adapter

Stores checkpoints in ``backfill_checkpoints``:

    name        text PRIMARY KEY
    state       jsonb
    created_at  timestamptz
    updated_at  timestamptz

State must be JSON-serializable. Save is an upsert, so a resumed job keeps
its original created_at.

Usage:
    pool = await get_pool()
    adapter = PostgresCheckpointAdapter(pool)
    await adapter.ensure_schema()
    checkpoint = Checkpoint(adapter, "users_backfill")
"""

import logging
from typing import Any, Hashable

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from checkpoints.base import (
    CheckpointAdapter,
    CheckpointError,
    CheckpointNotFound,
    normalize_name,
)
from repositories.database import TABLE_CHECKPOINTS

logger = logging.getLogger(__name__)


class PostgresCheckpointAdapter(CheckpointAdapter):
    """Checkpoint adapter backed by a psycopg async pool."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        table: sql.Identifier = TABLE_CHECKPOINTS,
    ):
        self.pool = pool
        self.table = table

    async def ensure_schema(self) -> None:
        """Create the checkpoint table if it does not exist."""
        query = sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {table} (
                name TEXT PRIMARY KEY,
                state JSONB,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        ).format(table=self.table)

        try:
            async with self.pool.connection() as conn:
                await conn.execute(query)
        except psycopg.Error as e:
            raise CheckpointError(f"Failed to create checkpoint table: {e}") from e
        logger.info("Checkpoint table ready")

    async def save(self, name: Hashable, state: Any) -> None:
        key = normalize_name(name)
        query = sql.SQL(
            """
            INSERT INTO {table} (name, state, created_at, updated_at)
            VALUES (%(name)s, %(state)s, now(), now())
            ON CONFLICT (name) DO UPDATE
            SET state = EXCLUDED.state, updated_at = now()
            """
        ).format(table=self.table)

        try:
            async with self.pool.connection() as conn:
                await conn.execute(query, {"name": key, "state": Json(state)})
        except (psycopg.Error, TypeError) as e:
            raise CheckpointError(f"Failed to save checkpoint {key!r}: {e}") from e

        logger.debug(f"Saved checkpoint {key}")

    async def load(self, name: Hashable) -> Any:
        key = normalize_name(name)
        query = sql.SQL("SELECT state FROM {table} WHERE name = %s").format(table=self.table)

        try:
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(query, (key,))
                row = await result.fetchone()
        except psycopg.Error as e:
            raise CheckpointError(f"Failed to load checkpoint {key!r}: {e}") from e

        if row is None:
            raise CheckpointNotFound(key)
        return row["state"]

    async def delete(self, name: Hashable) -> None:
        key = normalize_name(name)
        query = sql.SQL("DELETE FROM {table} WHERE name = %s").format(table=self.table)

        try:
            async with self.pool.connection() as conn:
                await conn.execute(query, (key,))
        except psycopg.Error as e:
            raise CheckpointError(f"Failed to delete checkpoint {key!r}: {e}") from e

        logger.debug(f"Deleted checkpoint {key}")


__all__ = ["PostgresCheckpointAdapter"]
