# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for health monitors and default probes
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for the health monitors and the bundled probe sets.
These can be overridden via environment variables or per operation.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class MonitorDefaults:
    """
    Defaults for health monitors.

    Controls the fan-out bound and the background poll cadence.
    """
    # Max wait for a full probe gather before failing closed
    probe_timeout_seconds: float = 15.0

    # Background refresh interval for the async monitor
    poll_interval_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "MonitorDefaults":
        """Create from environment variables."""
        return cls(
            probe_timeout_seconds=float(os.getenv("BACKFILL_PROBE_TIMEOUT_SECONDS", 15.0)),
            poll_interval_seconds=float(os.getenv("BACKFILL_POLL_INTERVAL_SECONDS", 10.0)),
        )


@dataclass(frozen=True)
class PostgresProbeDefaults:
    """
    Thresholds for the PostgreSQL probes.
    """
    long_query_seconds: float = 60.0  # non-idle query older than this halts
    min_cache_hit_ratio: float = 0.5  # heap cache hit ratio below this halts
    max_temp_mb: int = 500  # temp file usage per database above this halts

    @classmethod
    def from_env(cls) -> "PostgresProbeDefaults":
        """Create from environment variables."""
        return cls(
            long_query_seconds=float(os.getenv("BACKFILL_PG_LONG_QUERY_SECONDS", 60.0)),
            min_cache_hit_ratio=float(os.getenv("BACKFILL_PG_MIN_CACHE_HIT_RATIO", 0.5)),
            max_temp_mb=int(os.getenv("BACKFILL_PG_MAX_TEMP_MB", 500)),
        )


@dataclass(frozen=True)
class SystemProbeDefaults:
    """
    Thresholds for the host probes.
    """
    max_ram_percent: float = 80.0
    max_cpu_percent: float = 80.0

    @classmethod
    def from_env(cls) -> "SystemProbeDefaults":
        """Create from environment variables."""
        return cls(
            max_ram_percent=float(os.getenv("BACKFILL_MAX_RAM_PERCENT", 80.0)),
            max_cpu_percent=float(os.getenv("BACKFILL_MAX_CPU_PERCENT", 80.0)),
        )


@dataclass(frozen=True)
class BackfillDefaults:
    """All defaults bundled together."""
    monitor: MonitorDefaults = field(default_factory=MonitorDefaults)
    postgres: PostgresProbeDefaults = field(default_factory=PostgresProbeDefaults)
    system: SystemProbeDefaults = field(default_factory=SystemProbeDefaults)

    @classmethod
    def from_env(cls) -> "BackfillDefaults":
        """Create all defaults from environment."""
        return cls(
            monitor=MonitorDefaults.from_env(),
            postgres=PostgresProbeDefaults.from_env(),
            system=SystemProbeDefaults.from_env(),
        )


# Global defaults instance
_defaults: Optional[BackfillDefaults] = None


def get_defaults() -> BackfillDefaults:
    """
    Get global defaults instance.

    Loads from environment on first call.
    """
    global _defaults
    if _defaults is None:
        _defaults = BackfillDefaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Forget cached defaults so the next get_defaults() re-reads the environment."""
    global _defaults
    _defaults = None


__all__ = [
    "MonitorDefaults",
    "PostgresProbeDefaults",
    "SystemProbeDefaults",
    "BackfillDefaults",
    "get_defaults",
    "reset_defaults",
]
