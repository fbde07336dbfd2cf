# ============================================================================
# PROBE EXECUTOR
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Parallel probe execution
# PURPOSE: Fan out probes with an overall bound and fail closed
# CREATED: 17 OCT 2026
# ============================================================================
"""
Probe Executor

Executes a probe set with:
- Full fan-out (every probe runs concurrently)
- One overall timeout for the whole gather
- Fail-closed aggregation

Fail-closed means that if the gather times out, or any probe raises (or
returns something that is not a HealthSignal), EVERY entry of the snapshot
becomes a halt carrying the same reason. A partial result is never returned:
an unknown state is treated as unsafe.

Plain-function probes run in worker threads. A timed-out thread cannot be
interrupted; it is abandoned and finishes on its own.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, List, Sequence

from health.core import HealthSignal, MonitorSnapshot, Probe

logger = logging.getLogger(__name__)


class ProbeTimeoutError(Exception):
    """Reason attached to a snapshot when the gather exceeded its bound."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Health probes did not finish within {timeout_seconds}s")


class InvalidProbeResult(Exception):
    """A probe returned something other than a HealthSignal."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Probe returned {type(value).__name__}, expected HealthSignal")


def fail_closed(size: int, reason: Any) -> MonitorSnapshot:
    """Snapshot of ``size`` halt signals sharing one reason."""
    return [HealthSignal.halt(reason) for _ in range(size)]


async def invoke_probe(probe: Probe) -> HealthSignal:
    """Run one probe, in a worker thread unless it is a coroutine function."""
    if asyncio.iscoroutinefunction(probe):
        result = await probe()
    else:
        result = await asyncio.to_thread(probe)

    # Plain callables may hand back a coroutine (e.g. lambda: check(pool))
    if inspect.isawaitable(result):
        result = await result

    if not isinstance(result, HealthSignal):
        raise InvalidProbeResult(result)
    return result


async def gather_signals(
    probes: Sequence[Probe],
    timeout_seconds: float,
) -> MonitorSnapshot:
    """
    Run every probe concurrently and collect an ordered snapshot.

    Args:
        probes: Probe set (order is preserved in the result)
        timeout_seconds: Bound on the whole gather

    Returns:
        One HealthSignal per probe, or an all-halt snapshot on
        timeout or fault
    """
    if not probes:
        return []

    start_time = time.monotonic()
    tasks = [asyncio.ensure_future(invoke_probe(probe)) for probe in probes]

    try:
        done, pending = await asyncio.wait(tasks, timeout=timeout_seconds)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    failure = None
    for task in done:
        if task.cancelled():
            failure = failure or asyncio.CancelledError()
        elif task.exception() is not None:
            failure = failure or task.exception()

    if pending:
        for task in pending:
            task.cancel()
        logger.warning(
            f"{len(pending)} of {len(tasks)} health probes still running after "
            f"{timeout_seconds}s, failing closed"
        )
        return fail_closed(len(tasks), ProbeTimeoutError(timeout_seconds))

    if failure is not None:
        logger.error(f"Health probe failed, failing closed: {type(failure).__name__}: {failure}")
        return fail_closed(len(tasks), failure)

    snapshot: List[HealthSignal] = [task.result() for task in tasks]

    duration_ms = (time.monotonic() - start_time) * 1000
    logger.debug(
        f"Gathered {len(snapshot)} health signals in {duration_ms:.1f}ms "
        f"({sum(1 for s in snapshot if s.is_halt)} halt)"
    )
    return snapshot


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProbeTimeoutError",
    "InvalidProbeResult",
    "fail_closed",
    "invoke_probe",
    "gather_signals",
]
