# ============================================================================
# IN-MEMORY CHECKPOINT ADAPTER
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Ephemeral checkpoint storage
# PURPOSE: Process-lifetime checkpoints for tests and single-owner jobs
# CREATED: 17 OCT 2026
# ============================================================================
"""
In-memory checkpoint adapter.

Plain dict, no locking: meant to be owned by one job at a time. Use
TableCheckpointAdapter when several jobs or threads share an adapter.
"""

from typing import Any, Dict, Hashable, List

from checkpoints.base import (
    CheckpointAdapter,
    CheckpointNotFound,
    copy_state,
    normalize_name,
)


class MemoryCheckpointAdapter(CheckpointAdapter):
    """Checkpoints held in a dict for the lifetime of the process."""

    def __init__(self):
        self._states: Dict[str, Any] = {}

    async def save(self, name: Hashable, state: Any) -> None:
        self._states[normalize_name(name)] = copy_state(state)

    async def load(self, name: Hashable) -> Any:
        key = normalize_name(name)
        if key not in self._states:
            raise CheckpointNotFound(key)
        return copy_state(self._states[key])

    async def delete(self, name: Hashable) -> None:
        self._states.pop(normalize_name(name), None)

    def names(self) -> List[str]:
        return list(self._states)

    def clear(self) -> None:
        self._states.clear()

    def __len__(self) -> int:
        return len(self._states)


__all__ = ["MemoryCheckpointAdapter"]
