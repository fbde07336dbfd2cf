# ============================================================================
# SYSTEM HEALTH PROBES
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Default host probes
# PURPOSE: Halt backfills when the host runs short of memory or CPU
# CREATED: 17 OCT 2026
# ============================================================================
"""
System Health Probes

Host-level probes backed by psutil. Both are plain functions, so monitors
run them in worker threads.

Thresholds come from SystemProbeDefaults (80% by default).
"""

import logging
from typing import List, Optional

import psutil

from core.config import get_defaults
from health.core import HealthSignal, Probe

logger = logging.getLogger(__name__)


def check_ram_usage(max_percent: Optional[float] = None) -> HealthSignal:
    """Halt when used memory exceeds the limit."""
    if max_percent is None:
        max_percent = get_defaults().system.max_ram_percent
    usage = psutil.virtual_memory().percent
    if usage > max_percent:
        logger.warning(f"RAM usage {usage:.1f}% above {max_percent:.0f}%")
        return HealthSignal.halt("ram_usage")
    return HealthSignal.ok()


def check_cpu_usage(max_percent: Optional[float] = None) -> HealthSignal:
    """
    Halt when CPU utilisation exceeds the limit.

    Non-blocking: psutil compares against its previous call, so the very
    first reading in a process reports 0.0.
    """
    if max_percent is None:
        max_percent = get_defaults().system.max_cpu_percent
    usage = psutil.cpu_percent(interval=None)
    if usage > max_percent:
        logger.warning(f"CPU usage {usage:.1f}% above {max_percent:.0f}%")
        return HealthSignal.halt("cpu_usage")
    return HealthSignal.ok()


def system_probes() -> List[Probe]:
    """RAM and CPU probes."""
    return [check_ram_usage, check_cpu_usage]


__all__ = ["check_ram_usage", "check_cpu_usage", "system_probes"]
