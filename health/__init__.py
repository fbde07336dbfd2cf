# ============================================================================
# HEALTH MONITORING MODULE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Health signals, monitors and halt decision
# PURPOSE: Decide whether a backfill may keep going
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Monitoring Module

Probe-based health monitoring for backfill jobs:
- HealthSignal: ok / halt(reason) value returned by every probe
- should_halt: OR-reduction of a snapshot to a halt decision
- SyncHealthMonitor: probes on demand each time health is asked for
- AsyncHealthMonitor: polls in the background, serves a cached snapshot

Every gather fans out across all probes and fails closed: a timeout or a
faulting probe turns the whole snapshot into halt signals.

Usage:
    from health import HealthSignal, SyncHealthMonitor, should_halt

    def replication_ok() -> HealthSignal:
        return HealthSignal.ok()

    monitor = SyncHealthMonitor([replication_ok])
    if should_halt(await monitor.get_state()):
        ...
"""

from health.core import (
    SignalStatus,
    HealthSignal,
    Probe,
    MonitorSnapshot,
    snapshot_to_dicts,
)
from health.evaluator import should_halt
from health.executor import (
    ProbeTimeoutError,
    InvalidProbeResult,
    gather_signals,
)
from health.sync_monitor import SyncHealthMonitor
from health.async_monitor import (
    AsyncHealthMonitor,
    MonitorStatus,
    MonitorStoppedError,
)

__all__ = [
    # Core types
    "SignalStatus",
    "HealthSignal",
    "Probe",
    "MonitorSnapshot",
    "snapshot_to_dicts",
    # Evaluator
    "should_halt",
    # Executor
    "ProbeTimeoutError",
    "InvalidProbeResult",
    "gather_signals",
    # Monitors
    "SyncHealthMonitor",
    "AsyncHealthMonitor",
    "MonitorStatus",
    "MonitorStoppedError",
]
