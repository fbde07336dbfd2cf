# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the backfill engine.
"""

from core.config.defaults import (
    MonitorDefaults,
    PostgresProbeDefaults,
    SystemProbeDefaults,
    BackfillDefaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "MonitorDefaults",
    "PostgresProbeDefaults",
    "SystemProbeDefaults",
    "BackfillDefaults",
    "get_defaults",
    "reset_defaults",
]
