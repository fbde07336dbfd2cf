# ============================================================================
# CHECKPOINTS MODULE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Resumable batch state
# PURPOSE: Pluggable checkpoint persistence for batch operations
# CREATED: 17 OCT 2026
# ============================================================================
"""
Checkpoints Module

Adapters:
- MemoryCheckpointAdapter: dict, single owner, process lifetime
- TableCheckpointAdapter: lock-guarded dict shared across jobs
- PostgresCheckpointAdapter: JSONB table over a psycopg pool

A checkpoint is written after every batch success or failure, kept on halt
and error, and deleted only when the job reports done.
"""

from checkpoints.base import (
    CheckpointError,
    CheckpointNotFound,
    CheckpointAdapter,
    Checkpoint,
    normalize_name,
    copy_state,
    save_checkpoint,
    load_checkpoint,
    delete_checkpoint,
)
from checkpoints.memory import MemoryCheckpointAdapter
from checkpoints.table import TableCheckpointAdapter
from checkpoints.postgres import PostgresCheckpointAdapter

__all__ = [
    "CheckpointError",
    "CheckpointNotFound",
    "CheckpointAdapter",
    "Checkpoint",
    "normalize_name",
    "copy_state",
    "save_checkpoint",
    "load_checkpoint",
    "delete_checkpoint",
    "MemoryCheckpointAdapter",
    "TableCheckpointAdapter",
    "PostgresCheckpointAdapter",
]
