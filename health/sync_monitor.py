# ============================================================================
# SYNC HEALTH MONITOR
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - On-demand health monitoring
# PURPOSE: Probe the environment every time health is asked for
# CREATED: 17 OCT 2026
# ============================================================================
"""
Sync Health Monitor

Runs the whole probe set each time ``get_state()`` is awaited. The caller
waits until every probe finished or the timeout expired (then the snapshot
is all-halt, see health.executor).

Usage:
    monitor = SyncHealthMonitor([check_ram_usage, check_cpu_usage])
    snapshot = await monitor.get_state()
    if should_halt(snapshot):
        ...
"""

import logging
from typing import Optional, Sequence, Tuple

from core.config import get_defaults
from health.core import MonitorSnapshot, Probe
from health.executor import gather_signals

logger = logging.getLogger(__name__)


async def get_state(
    probes: Sequence[Probe],
    timeout_seconds: Optional[float] = None,
) -> MonitorSnapshot:
    """
    Gather a fresh snapshot from a probe set.

    Args:
        probes: Probe set
        timeout_seconds: Bound on the gather (default from config, 15s)
    """
    if timeout_seconds is None:
        timeout_seconds = get_defaults().monitor.probe_timeout_seconds
    return await gather_signals(probes, timeout_seconds)


class SyncHealthMonitor:
    """
    On-demand monitor over a fixed probe set.

    Holds no background resources, so start() and stop() only exist to
    share the lifecycle of AsyncHealthMonitor.
    """

    def __init__(
        self,
        probes: Sequence[Probe],
        timeout_seconds: Optional[float] = None,
    ):
        self.probes: Tuple[Probe, ...] = tuple(probes)
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else get_defaults().monitor.probe_timeout_seconds
        )

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def get_state(self) -> MonitorSnapshot:
        """Run every probe now and return the snapshot."""
        return await gather_signals(self.probes, self.timeout_seconds)

    def __repr__(self) -> str:
        return f"SyncHealthMonitor(probes={len(self.probes)}, timeout={self.timeout_seconds}s)"


__all__ = ["SyncHealthMonitor", "get_state"]
