# ============================================================================
# HEALTH SIGNAL CORE TYPES
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Base types for health probes
# PURPOSE: Health signal value type and the probe callable contract
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Signal Core Types

A probe is any zero-argument callable (plain function or coroutine
function) returning a HealthSignal:

    def replication_lag() -> HealthSignal:
        lag = read_lag_seconds()
        if lag > 30:
            return HealthSignal.halt(f"replication lag {lag}s")
        return HealthSignal.ok()

The halt reason is opaque. It is forwarded verbatim into evaluators,
callbacks and telemetry metadata.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Sequence, Union


class SignalStatus(str, Enum):
    """Health signal variants."""
    OK = "ok"
    HALT = "halt"


@dataclass(frozen=True)
class HealthSignal:
    """Result from a single probe."""
    status: SignalStatus
    reason: Any = None

    @classmethod
    def ok(cls) -> "HealthSignal":
        """Create healthy signal."""
        return cls(status=SignalStatus.OK)

    @classmethod
    def halt(cls, reason: Any = None) -> "HealthSignal":
        """Create halt signal carrying an opaque reason."""
        return cls(status=SignalStatus.HALT, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == SignalStatus.OK

    @property
    def is_halt(self) -> bool:
        return self.status == SignalStatus.HALT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for telemetry metadata."""
        result: Dict[str, Any] = {"status": self.status.value}
        if self.is_halt:
            result["reason"] = self.reason
        return result


ProbeResult = Union[HealthSignal, Awaitable[HealthSignal]]
Probe = Callable[[], ProbeResult]

# Ordered, one entry per probe
MonitorSnapshot = List[HealthSignal]


def snapshot_to_dicts(snapshot: Sequence[HealthSignal]) -> List[Dict[str, Any]]:
    """Render a snapshot for telemetry metadata."""
    return [signal.to_dict() for signal in snapshot]


__all__ = [
    "SignalStatus",
    "HealthSignal",
    "Probe",
    "ProbeResult",
    "MonitorSnapshot",
    "snapshot_to_dicts",
]
