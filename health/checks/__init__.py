# ============================================================================
# DEFAULT HEALTH PROBES
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Bundled probe sets
# PURPOSE: Ready-made probes for PostgreSQL and the host
# CREATED: 17 OCT 2026
# ============================================================================
"""
Default Health Probes

PostgreSQL probes (async, need a pool):
- long_waiting_queries -> halt("long_queries")
- hot_io_tables -> halt("hot_io")
- temp_file_usage -> halt("temp_file_usage")

Host probes (psutil):
- check_ram_usage -> halt("ram_usage")
- check_cpu_usage -> halt("cpu_usage")

Usage:
    probes = postgres_probes(pool) + system_probes()
"""

from health.checks.postgres import (
    long_waiting_queries,
    hot_io_tables,
    temp_file_usage,
    postgres_probes,
)
from health.checks.system import check_ram_usage, check_cpu_usage, system_probes

__all__ = [
    # Postgres
    "long_waiting_queries",
    "hot_io_tables",
    "temp_file_usage",
    "postgres_probes",
    # System
    "check_ram_usage",
    "check_cpu_usage",
    "system_probes",
]
