# ============================================================================
# POSTGRES HEALTH PROBES
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Default PostgreSQL probes
# PURPOSE: Halt backfills while the database is already under strain
# CREATED: 17 OCT 2026
# ============================================================================
"""
Postgres Health Probes

Three probes over the statistics views:
- long_waiting_queries: a non-idle query running longer than 60s
- hot_io_tables: a user table with heap cache hit ratio below 0.5
- temp_file_usage: a database with more than 500 MB of temp files

Each returns HealthSignal.halt("long_queries" | "hot_io" | "temp_file_usage")
or HealthSignal.ok(). Query failures propagate, so the gather fails closed.
Thresholds come from PostgresProbeDefaults (BACKFILL_PG_* env vars).

Usage:
    pool = await get_pool()
    options = BatchOperationOptions(..., health_checkers=postgres_probes(pool))
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from core.config import get_defaults
from health.core import HealthSignal, Probe

logger = logging.getLogger(__name__)


LONG_WAITING_QUERIES_SQL = """
    SELECT
        pid,
        EXTRACT(EPOCH FROM (now() - query_start)) AS duration_seconds,
        state,
        wait_event_type,
        wait_event,
        query
    FROM pg_stat_activity
    WHERE state <> 'idle'
      AND query_start IS NOT NULL
      AND pid <> pg_backend_pid()
    ORDER BY duration_seconds DESC
    LIMIT 10
"""

HOT_IO_TABLES_SQL = """
    SELECT
        relname,
        heap_blks_read,
        heap_blks_hit,
        heap_blks_read * 8 / 1024 AS read_mb,
        (heap_blks_hit + heap_blks_read) AS total_accesses,
        (heap_blks_hit::float / NULLIF(heap_blks_hit + heap_blks_read, 0)) AS cache_hit_ratio
    FROM pg_statio_user_tables
    ORDER BY heap_blks_read DESC
    LIMIT 10
"""

TEMP_FILE_USAGE_SQL = """
    SELECT
        datname,
        temp_bytes / 1024 / 1024 AS temp_mb
    FROM pg_stat_database
    ORDER BY temp_bytes DESC
    LIMIT 10
"""


async def _fetch_rows(pool: AsyncConnectionPool, query: str) -> List[Dict[str, Any]]:
    async with pool.connection() as conn:
        conn.row_factory = dict_row
        result = await conn.execute(query)
        return await result.fetchall()


def _issues(rows: List[Dict[str, Any]], reason: str) -> HealthSignal:
    if rows:
        logger.warning(f"Postgres probe {reason}: {len(rows)} offending rows")
        return HealthSignal.halt(reason)
    return HealthSignal.ok()


async def long_waiting_queries(
    pool: AsyncConnectionPool,
    threshold_seconds: Optional[float] = None,
) -> HealthSignal:
    """Halt on any non-idle query older than the threshold."""
    if threshold_seconds is None:
        threshold_seconds = get_defaults().postgres.long_query_seconds
    rows = await _fetch_rows(pool, LONG_WAITING_QUERIES_SQL)
    long_queries = [
        row for row in rows
        if row["duration_seconds"] is not None and float(row["duration_seconds"]) > threshold_seconds
    ]
    return _issues(long_queries, "long_queries")


async def hot_io_tables(
    pool: AsyncConnectionPool,
    min_cache_hit_ratio: Optional[float] = None,
) -> HealthSignal:
    """Halt on any table whose heap reads mostly miss the buffer cache."""
    if min_cache_hit_ratio is None:
        min_cache_hit_ratio = get_defaults().postgres.min_cache_hit_ratio
    rows = await _fetch_rows(pool, HOT_IO_TABLES_SQL)
    # Tables never read have a NULL ratio
    bad_tables = [
        row for row in rows
        if row["cache_hit_ratio"] is not None and row["cache_hit_ratio"] < min_cache_hit_ratio
    ]
    return _issues(bad_tables, "hot_io")


async def temp_file_usage(
    pool: AsyncConnectionPool,
    max_temp_mb: Optional[int] = None,
) -> HealthSignal:
    """Halt on any database spilling more temp file data than allowed."""
    if max_temp_mb is None:
        max_temp_mb = get_defaults().postgres.max_temp_mb
    rows = await _fetch_rows(pool, TEMP_FILE_USAGE_SQL)
    high_temp = [
        row for row in rows
        if row["temp_mb"] is not None and row["temp_mb"] > max_temp_mb
    ]
    return _issues(high_temp, "temp_file_usage")


def postgres_probes(pool: AsyncConnectionPool) -> List[Probe]:
    """The three PostgreSQL probes bound to a pool, as zero-argument probes."""

    async def pg_long_waiting_queries() -> HealthSignal:
        return await long_waiting_queries(pool)

    async def pg_hot_io_tables() -> HealthSignal:
        return await hot_io_tables(pool)

    async def pg_temp_file_usage() -> HealthSignal:
        return await temp_file_usage(pool)

    return [pg_long_waiting_queries, pg_hot_io_tables, pg_temp_file_usage]


__all__ = [
    "long_waiting_queries",
    "hot_io_tables",
    "temp_file_usage",
    "postgres_probes",
]
