# ============================================================================
# CHECKPOINT BASE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Checkpoint capability interface
# PURPOSE: Save / load / delete batch state keyed by name
# CREATED: 17 OCT 2026
# ============================================================================
"""
Checkpoint Base

A checkpoint adapter persists opaque batch state under a name:

    await adapter.save("users_backfill", {"last_id": 1200})
    state = await adapter.load("users_backfill")     # {"last_id": 1200}
    await adapter.delete("users_backfill")
    await adapter.load("users_backfill")              # CheckpointNotFound

``Checkpoint(adapter, name)`` binds an adapter to a name for one job.
Checkpointing is opt-in: the module-level helpers accept ``None`` and treat
it as "no checkpoint" (save/delete succeed, load reports not found).
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Hashable, Optional

logger = logging.getLogger(__name__)


class CheckpointError(Exception):
    """Raised when a checkpoint operation fails."""
    pass


class CheckpointNotFound(CheckpointError):
    """Raised by load() when nothing is stored under the name."""

    def __init__(self, name: Any):
        self.name = name
        super().__init__(f"No checkpoint stored for {name!r}")


def normalize_name(name: Hashable) -> str:
    """Adapters key state by the string form of the name."""
    return name if isinstance(name, str) else str(name)


def copy_state(state: Any) -> Any:
    """
    Deep copy for in-process adapters.

    Raises:
        CheckpointError: If the state cannot be copied (locks, cursors, generators)
    """
    try:
        return copy.deepcopy(state)
    except (TypeError, copy.Error) as e:
        raise CheckpointError(f"State of type {type(state).__name__} cannot be checkpointed: {e}") from e


class CheckpointAdapter(ABC):
    """
    Capability interface for checkpoint storage.

    Implementations must:
    - Key state by normalize_name(name)
    - Raise CheckpointNotFound from load() for a missing name
    - Treat delete() of a missing name as success
    - Raise CheckpointError (or a subclass) for storage failures
    """

    @abstractmethod
    async def save(self, name: Hashable, state: Any) -> None:
        """Store state under name, replacing any previous value."""
        pass

    @abstractmethod
    async def load(self, name: Hashable) -> Any:
        """Return the state stored under name."""
        pass

    @abstractmethod
    async def delete(self, name: Hashable) -> None:
        """Remove the state stored under name."""
        pass


@dataclass(frozen=True)
class Checkpoint:
    """An adapter bound to a checkpoint name."""
    adapter: CheckpointAdapter
    name: Hashable

    async def save(self, state: Any) -> None:
        await self.adapter.save(self.name, state)

    async def load(self) -> Any:
        return await self.adapter.load(self.name)

    async def delete(self) -> None:
        await self.adapter.delete(self.name)

    def __str__(self) -> str:
        return f"{type(self.adapter).__name__}:{normalize_name(self.name)}"


# ============================================================================
# OPTIONAL-CHECKPOINT HELPERS
# ============================================================================

async def save_checkpoint(checkpoint: Optional[Checkpoint], state: Any) -> None:
    """Save state, or do nothing when checkpointing is disabled."""
    if checkpoint is None:
        return
    await checkpoint.save(state)
    logger.debug(f"Saved checkpoint {checkpoint}")


async def load_checkpoint(checkpoint: Optional[Checkpoint]) -> Any:
    """
    Load state.

    Raises:
        CheckpointNotFound: If nothing is stored, or checkpointing is disabled
    """
    if checkpoint is None:
        raise CheckpointNotFound(None)
    return await checkpoint.load()


async def delete_checkpoint(checkpoint: Optional[Checkpoint]) -> None:
    """Delete state, or do nothing when checkpointing is disabled."""
    if checkpoint is None:
        return
    await checkpoint.delete()
    logger.debug(f"Deleted checkpoint {checkpoint}")


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
]
