# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Foundation - Core enums and result contracts
# PURPOSE: Define operation modes and the tagged outcome shared by handlers
#          and processors
# CREATED: 17 OCT 2026
# EXPORTS: OperationMode, OutcomeStatus, Outcome, DONE
# ============================================================================
"""
Base contracts for the adaptive backfill engine.

Handlers and processors speak the same small vocabulary:

    Outcome.done()          - nothing left to do
    Outcome.ok(state)       - work advanced, here is the new state
    Outcome.halt(state)     - controlled stop (degraded health), not an error
    Outcome.error(reason)   - the unit of work failed

A processor reports full completion as ``Outcome.ok(DONE)``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


# ============================================================================
# STATUS ENUMS
# ============================================================================

class OperationMode(str, Enum):
    """
    Health monitoring discipline for a job.

    SYNC probes on demand every time health is checked.
    ASYNC polls in the background and serves a cached snapshot.
    """
    SYNC = "sync"
    ASYNC = "async"


class OutcomeStatus(str, Enum):
    """
    Outcome variants.

    Terminal for a processor: OK (with DONE or a state), HALT, ERROR.
    """
    DONE = "done"
    OK = "ok"
    HALT = "halt"
    ERROR = "error"


# Marker value carried by Outcome.ok() when a job ran to completion
DONE = OutcomeStatus.DONE


# ============================================================================
# OUTCOME
# ============================================================================

@dataclass(frozen=True)
class Outcome:
    """Tagged result of a handler invocation or of a whole operation."""
    status: OutcomeStatus
    value: Any = None

    @classmethod
    def done(cls) -> "Outcome":
        return cls(status=OutcomeStatus.DONE)

    @classmethod
    def ok(cls, value: Any = None) -> "Outcome":
        return cls(status=OutcomeStatus.OK, value=value)

    @classmethod
    def halt(cls, value: Any = None) -> "Outcome":
        return cls(status=OutcomeStatus.HALT, value=value)

    @classmethod
    def error(cls, reason: Any) -> "Outcome":
        return cls(status=OutcomeStatus.ERROR, value=reason)

    @property
    def is_done(self) -> bool:
        """True for Outcome.done() and for a processor's Outcome.ok(DONE)."""
        if self.status == OutcomeStatus.DONE:
            return True
        return self.status == OutcomeStatus.OK and self.value is DONE

    @property
    def is_ok(self) -> bool:
        return self.status == OutcomeStatus.OK

    @property
    def is_halt(self) -> bool:
        return self.status == OutcomeStatus.HALT

    @property
    def is_error(self) -> bool:
        return self.status == OutcomeStatus.ERROR

    @property
    def reason(self) -> Any:
        """Error reason (None unless this is an error outcome)."""
        return self.value if self.is_error else None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "OperationMode",
    "OutcomeStatus",
    "Outcome",
    "DONE",
]
