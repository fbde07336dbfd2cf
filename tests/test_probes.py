# ============================================================================
# DEFAULT PROBE TESTS
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Tests - PostgreSQL and host probes
# PURPOSE: Verify probe thresholds against mocked statistics
# CREATED: 17 OCT 2026
# ============================================================================
"""
Default Probe Tests

Statistics views and psutil are mocked; no database is needed.

Run with:
    pytest tests/test_probes.py -v
"""

import asyncio
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from psycopg.rows import dict_row

from health import HealthSignal, gather_signals
from health.checks import (
    check_cpu_usage,
    check_ram_usage,
    hot_io_tables,
    long_waiting_queries,
    postgres_probes,
    system_probes,
    temp_file_usage,
)
from health.checks import postgres as pg_checks
from health.checks.postgres import LONG_WAITING_QUERIES_SQL


POOL = object()


def _patch_rows(rows=None, side_effect=None):
    return patch(
        "health.checks.postgres._fetch_rows",
        new=AsyncMock(return_value=rows or [], side_effect=side_effect),
    )


# ============================================================================
# POSTGRES
# ============================================================================

class TestLongWaitingQueries:

    def test_ok_when_no_rows(self):
        with _patch_rows([]):
            assert asyncio.run(long_waiting_queries(POOL)) == HealthSignal.ok()

    def test_ok_below_threshold(self):
        with _patch_rows([{"duration_seconds": 59.9}, {"duration_seconds": None}]):
            assert asyncio.run(long_waiting_queries(POOL)) == HealthSignal.ok()

    def test_halt_above_threshold(self):
        with _patch_rows([{"duration_seconds": 61.0}]):
            assert asyncio.run(long_waiting_queries(POOL)) == HealthSignal.halt("long_queries")

    def test_custom_threshold(self):
        with _patch_rows([{"duration_seconds": 11}]):
            assert asyncio.run(long_waiting_queries(POOL, threshold_seconds=10)).is_halt
            assert asyncio.run(long_waiting_queries(POOL, threshold_seconds=20)).is_ok


class TestHotIoTables:

    def test_halt_on_low_cache_hit_ratio(self):
        with _patch_rows([{"relname": "users", "cache_hit_ratio": 0.2}]):
            assert asyncio.run(hot_io_tables(POOL)) == HealthSignal.halt("hot_io")

    def test_ok_on_high_ratio(self):
        with _patch_rows([{"relname": "users", "cache_hit_ratio": 0.99}]):
            assert asyncio.run(hot_io_tables(POOL)).is_ok

    def test_unread_tables_are_ignored(self):
        with _patch_rows([{"relname": "empty", "cache_hit_ratio": None}]):
            assert asyncio.run(hot_io_tables(POOL)).is_ok


class TestTempFileUsage:

    def test_halt_above_limit(self):
        with _patch_rows([{"datname": "app", "temp_mb": 501}]):
            assert asyncio.run(temp_file_usage(POOL)) == HealthSignal.halt("temp_file_usage")

    def test_ok_at_limit(self):
        with _patch_rows([{"datname": "app", "temp_mb": 500}, {"datname": "other", "temp_mb": None}]):
            assert asyncio.run(temp_file_usage(POOL)).is_ok


class TestPostgresProbes:

    def test_bound_probes_gather(self):
        rows_by_query = {
            pg_checks.LONG_WAITING_QUERIES_SQL: [{"duration_seconds": 300}],
            pg_checks.HOT_IO_TABLES_SQL: [],
            pg_checks.TEMP_FILE_USAGE_SQL: [{"temp_mb": 10}],
        }

        async def fake_fetch(pool, query):
            assert pool is POOL
            return rows_by_query[query]

        with patch("health.checks.postgres._fetch_rows", new=fake_fetch):
            snapshot = asyncio.run(gather_signals(postgres_probes(POOL), 1.0))

        assert snapshot == [HealthSignal.halt("long_queries"), HealthSignal.ok(), HealthSignal.ok()]

    def test_query_failure_fails_closed(self):
        with _patch_rows(side_effect=ConnectionError("no route to host")):
            snapshot = asyncio.run(gather_signals(postgres_probes(POOL), 1.0))

        assert len(snapshot) == 3
        assert all(s.is_halt for s in snapshot)

    def test_fetch_rows_uses_dict_rows(self):
        result = MagicMock()
        result.fetchall = AsyncMock(return_value=[{"duration_seconds": 1}])
        conn = MagicMock()
        conn.execute = AsyncMock(return_value=result)

        @asynccontextmanager
        async def connection():
            yield conn

        pool = SimpleNamespace(connection=connection)
        rows = asyncio.run(pg_checks._fetch_rows(pool, LONG_WAITING_QUERIES_SQL))

        assert rows == [{"duration_seconds": 1}]
        assert conn.row_factory is dict_row
        conn.execute.assert_awaited_once_with(LONG_WAITING_QUERIES_SQL)


# ============================================================================
# SYSTEM
# ============================================================================

class TestSystemProbes:

    @pytest.mark.parametrize("percent,halts", [(50.0, False), (80.0, False), (80.1, True)])
    def test_ram(self, percent, halts):
        with patch("health.checks.system.psutil") as psutil:
            psutil.virtual_memory.return_value = SimpleNamespace(percent=percent)
            signal = check_ram_usage()

        assert signal.is_halt is halts
        if halts:
            assert signal == HealthSignal.halt("ram_usage")

    @pytest.mark.parametrize("percent,halts", [(10.0, False), (95.0, True)])
    def test_cpu(self, percent, halts):
        with patch("health.checks.system.psutil") as psutil:
            psutil.cpu_percent.return_value = percent
            signal = check_cpu_usage()

        assert signal.is_halt is halts
        psutil.cpu_percent.assert_called_once_with(interval=None)

    def test_custom_limits(self):
        with patch("health.checks.system.psutil") as psutil:
            psutil.virtual_memory.return_value = SimpleNamespace(percent=60.0)
            assert check_ram_usage(max_percent=50).is_halt
            assert check_ram_usage(max_percent=70).is_ok

    def test_system_probes_are_zero_arg(self):
        with patch("health.checks.system.psutil") as psutil:
            psutil.virtual_memory.return_value = SimpleNamespace(percent=1.0)
            psutil.cpu_percent.return_value = 1.0
            snapshot = asyncio.run(gather_signals(system_probes(), 1.0))

        assert snapshot == [HealthSignal.ok(), HealthSignal.ok()]
