# ============================================================================
# TABLE CHECKPOINT ADAPTER
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Shared checkpoint storage
# PURPOSE: Checkpoint table safe for concurrent jobs, tasks and threads
# CREATED: 17 OCT 2026
# ============================================================================
"""
Table checkpoint adapter.

A lock-guarded map that many jobs can share. Operations on different names
never interfere; operations on the same name are last-writer-wins.

The lock is a threading.Lock held only for the dict access, so the adapter
is usable from event-loop tasks and from handler worker threads alike.

Usage:
    CHECKPOINTS = TableCheckpointAdapter()

    options = BatchOperationOptions(
        ...,
        checkpoint=Checkpoint(CHECKPOINTS, "users_backfill"),
    )
"""

import logging
import threading
from typing import Any, Dict, Hashable, List

from checkpoints.base import (
    CheckpointAdapter,
    CheckpointNotFound,
    copy_state,
    normalize_name,
)

logger = logging.getLogger(__name__)


class TableCheckpointAdapter(CheckpointAdapter):
    """Concurrency-safe in-process checkpoint table."""

    def __init__(self, table_name: str = "backfill_checkpoints"):
        self.table_name = table_name
        self._rows: Dict[str, Any] = {}
        self._lock = threading.Lock()

    async def save(self, name: Hashable, state: Any) -> None:
        key = normalize_name(name)
        snapshot = copy_state(state)
        with self._lock:
            self._rows[key] = snapshot

    async def load(self, name: Hashable) -> Any:
        key = normalize_name(name)
        with self._lock:
            if key not in self._rows:
                raise CheckpointNotFound(key)
            stored = self._rows[key]
        return copy_state(stored)

    async def delete(self, name: Hashable) -> None:
        with self._lock:
            self._rows.pop(normalize_name(name), None)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._rows)

    def clear(self) -> None:
        with self._lock:
            count = len(self._rows)
            self._rows.clear()
        logger.debug(f"Cleared {count} checkpoints from {self.table_name}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


__all__ = ["TableCheckpointAdapter"]
