# ============================================================================
# BACKFILL REGISTRY
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Backfill registration and lookup
# PURPOSE: Name operations, keep their default options, run them on demand
# CREATED: 17 OCT 2026
# ============================================================================
"""
Backfill Registry

Registers named backfills with their default configuration. A registered
backfill runs with per-call overrides layered over those defaults.

Design:
- Backfills are registered at import time via decorator
- Options are validated at registration (bad config fails the import)
- Fail-fast on duplicate registration
- Supports both sync and async handlers

Example:
    @batch_operation("users_email_backfill", initial_state=0,
                     health_checkers=system_probes(),
                     checkpoint=Checkpoint(CHECKPOINTS, "users_email"))
    def users_email_backfill(last_id):
        rows = fetch_users_after(last_id, limit=500)
        if not rows:
            return Outcome.done()
        write_emails(rows)
        return Outcome.ok(rows[-1].id)

    outcome = await get_registry().run("users_email_backfill", delay_between_batches_seconds=0.5)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from core.contracts import Outcome
from core.models.options import (
    BatchOperationOptions,
    SingleOperationOptions,
    option_values,
)
import processors

logger = logging.getLogger(__name__)


# ============================================================================
# TYPES
# ============================================================================

class BackfillKind(str, Enum):
    """Shape of a registered backfill."""
    SINGLE = "single"
    BATCH = "batch"


@dataclass
class RegisteredBackfill:
    """A named backfill and its default options."""
    kind: BackfillKind
    name: str
    options: Union[SingleOperationOptions, BatchOperationOptions]
    function: str = ""
    module: str = ""
    registered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def build_options(self, **overrides: Any) -> Union[SingleOperationOptions, BatchOperationOptions]:
        """Default options with overrides applied, validated again."""
        values = option_values(self.options)
        values.update(overrides)
        return type(self.options)(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "mode": self.options.mode.value,
            "probes": len(self.options.health_checkers),
            "function": self.function,
            "module": self.module,
            "registered_at": self.registered_at.isoformat(),
        }


# ============================================================================
# EXCEPTIONS
# ============================================================================

class BackfillRegistryError(Exception):
    """Base exception for registry errors."""
    pass


class BackfillNotFoundError(BackfillRegistryError, KeyError):
    """Raised when a backfill name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Backfill not found: {name}")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateBackfillError(BackfillRegistryError, ValueError):
    """Raised when a backfill name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Backfill already registered: {name}")


# ============================================================================
# REGISTRY
# ============================================================================

class BackfillRegistry:
    """Named backfills and their default options."""

    def __init__(self):
        self._backfills: Dict[str, RegisteredBackfill] = {}

    def _register(self, entry: RegisteredBackfill) -> None:
        if entry.name in self._backfills:
            raise DuplicateBackfillError(entry.name)
        self._backfills[entry.name] = entry
        logger.debug(f"Registered {entry.kind.value} backfill: {entry.name} ({entry.module}.{entry.function})")

    def single_operation(self, name: str, **defaults: Any) -> Callable[[Callable], Callable]:
        """
        Decorator registering a single-operation handler.

        Args:
            name: Backfill name (must be unique)
            **defaults: SingleOperationOptions fields except ``handle``

        Raises:
            ConfigurationError: If the resulting options are invalid
            DuplicateBackfillError: If the name is taken
        """
        def decorator(func: Callable) -> Callable:
            options = SingleOperationOptions(handle=func, **defaults)
            self._register(RegisteredBackfill(
                kind=BackfillKind.SINGLE,
                name=name,
                options=options,
                function=getattr(func, "__name__", repr(func)),
                module=getattr(func, "__module__", "") or "",
            ))
            return func

        return decorator

    def batch_operation(
        self,
        name: str,
        initial_state: Any = None,
        **defaults: Any,
    ) -> Callable[[Callable], Callable]:
        """
        Decorator registering a batch handler.

        Args:
            name: Backfill name (must be unique)
            initial_state: State for a fresh (non-resumed) run
            **defaults: BatchOperationOptions fields except ``handle_batch``

        Raises:
            ConfigurationError: If the resulting options are invalid
            DuplicateBackfillError: If the name is taken
        """
        def decorator(func: Callable) -> Callable:
            options = BatchOperationOptions(
                handle_batch=func,
                initial_state=initial_state,
                **defaults,
            )
            self._register(RegisteredBackfill(
                kind=BackfillKind.BATCH,
                name=name,
                options=options,
                function=getattr(func, "__name__", repr(func)),
                module=getattr(func, "__module__", "") or "",
            ))
            return func

        return decorator

    def get(self, name: str) -> Optional[RegisteredBackfill]:
        return self._backfills.get(name)

    def get_or_raise(self, name: str) -> RegisteredBackfill:
        """
        Raises:
            BackfillNotFoundError: If name is not registered
        """
        entry = self._backfills.get(name)
        if entry is None:
            raise BackfillNotFoundError(name)
        return entry

    async def run(self, name: str, **overrides: Any) -> Outcome:
        """
        Run a registered backfill.

        Args:
            name: Backfill name
            **overrides: Option fields replacing the registered defaults
                for this run only

        Raises:
            BackfillNotFoundError: If name is not registered
            ConfigurationError: If the overrides make the options invalid
        """
        entry = self.get_or_raise(name)
        options = entry.build_options(**overrides)
        logger.info(f"Running {entry.kind.value} backfill {name}")
        return await processors.run(options)

    def run_sync(self, name: str, **overrides: Any) -> Outcome:
        """Blocking run() on a fresh event loop."""
        return asyncio.run(self.run(name, **overrides))

    def backfills(self) -> List[Tuple[str, str]]:
        """(kind, name) pairs in registration order."""
        return [(entry.kind.value, entry.name) for entry in self._backfills.values()]

    def list_backfills(self) -> List[Dict[str, Any]]:
        """Registered backfills with metadata."""
        return [entry.to_dict() for entry in self._backfills.values()]

    def clear(self) -> None:
        """
        Remove every registration.

        Primarily for testing.
        """
        self._backfills.clear()
        logger.debug("Cleared all backfills")

    def __contains__(self, name: str) -> bool:
        return name in self._backfills

    def __len__(self) -> int:
        return len(self._backfills)


# ============================================================================
# GLOBAL INSTANCE
# ============================================================================

_registry: Optional[BackfillRegistry] = None


def get_registry() -> BackfillRegistry:
    """Get the global backfill registry."""
    global _registry
    if _registry is None:
        _registry = BackfillRegistry()
    return _registry


def single_operation(name: str, **defaults: Any) -> Callable[[Callable], Callable]:
    """Register a single operation on the global registry."""
    return get_registry().single_operation(name, **defaults)


def batch_operation(name: str, initial_state: Any = None, **defaults: Any) -> Callable[[Callable], Callable]:
    """Register a batch operation on the global registry."""
    return get_registry().batch_operation(name, initial_state=initial_state, **defaults)


async def run_backfill(name: str, **overrides: Any) -> Outcome:
    """Run a backfill from the global registry."""
    return await get_registry().run(name, **overrides)


# ============================================================================
# EXPORTS
# ============================================================================

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
