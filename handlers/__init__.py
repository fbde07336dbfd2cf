# ============================================================================
# BACKFILL REGISTRY
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Backfill registration and lookup
# PURPOSE: Register and run named backfills
# CREATED: 17 OCT 2026
# ============================================================================
"""
Backfill Registry

Provides a decorator-based registration system for backfills.

Usage:
    from handlers import single_operation, get_registry

    @single_operation("rebuild_search_index", health_checkers=system_probes())
    def rebuild_search_index(health_check):
        if health_check().is_halt:
            return Outcome.halt("not started")
        rebuild()
        return Outcome.done()

    outcome = get_registry().run_sync("rebuild_search_index")
"""

from handlers.registry import (
    BackfillKind,
    RegisteredBackfill,
    BackfillRegistryError,
    BackfillNotFoundError,
    DuplicateBackfillError,
    BackfillRegistry,
    get_registry,
    single_operation,
    batch_operation,
    run_backfill,
)

__all__ = [
    "BackfillKind",
    "RegisteredBackfill",
    "BackfillRegistryError",
    "BackfillNotFoundError",
    "DuplicateBackfillError",
    "BackfillRegistry",
    "get_registry",
    "single_operation",
    "batch_operation",
    "run_backfill",
]
