# ============================================================================
# PROCESSOR BASE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Handler execution machinery
# PURPOSE: Invoke user handlers with timeout and fault capture, build the
#          health-check callback and the monitor for an operation
# CREATED: 17 OCT 2026
# ============================================================================
"""
Processor Base

Shared by the single and batch processors:

- invoke_handler: runs a handler (thread for plain functions, loop for
  coroutine functions), applies the optional deadline and normalises
  every way it can fail into an Outcome.error
- build_monitor: SyncHealthMonitor or AsyncHealthMonitor by mode
- build_health_check: the zero-argument callback handed to single handlers
- run_callback: lifecycle callbacks on the processor's own task

Timeouts abandon the handler rather than kill it. The abandoned task is kept
referenced until it finishes and its eventual result is logged. A plain
function already running in a worker thread cannot be interrupted at all.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set, Union

from core.contracts import OperationMode, Outcome
from health import (
    AsyncHealthMonitor,
    HealthSignal,
    SyncHealthMonitor,
    should_halt,
)

logger = logging.getLogger(__name__)

Monitor = Union[SyncHealthMonitor, AsyncHealthMonitor]


# ============================================================================
# FAILURE REASONS
# ============================================================================

class HandlerTimeoutError(Exception):
    """Reason reported when a handler missed its deadline."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Handler did not finish within {timeout_seconds}s")


class HandlerExit(Exception):
    """Reason reported when a handler called sys.exit()."""

    def __init__(self, code: Any):
        self.code = code
        super().__init__(f"Handler exited with code {code!r}")


class InvalidHandlerResult(Exception):
    """Reason reported when a handler returned something other than an Outcome."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Handler returned {type(value).__name__}, expected Outcome")


# ============================================================================
# HANDLER INVOCATION
# ============================================================================

@dataclass(frozen=True)
class HandlerCall:
    """Result of one handler invocation."""
    outcome: Outcome
    faulted: bool = False  # raised, exited, or returned garbage


# Tasks abandoned after a timeout, kept alive until they finish
_abandoned: Set[asyncio.Future] = set()


def _abandoned_finished(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        logger.debug("Abandoned handler was cancelled")
        return
    call = task.result()
    logger.info(f"Abandoned handler finished after its deadline: {call.outcome.status.value}")


def abandoned_count() -> int:
    """Number of timed-out handlers still running."""
    return len(_abandoned)


async def _run_handler(handler: Callable, arg: Any) -> HandlerCall:
    try:
        if asyncio.iscoroutinefunction(handler):
            result = await handler(arg)
        else:
            result = await asyncio.to_thread(handler, arg)
            if inspect.isawaitable(result):
                result = await result
    except SystemExit as e:
        logger.error(f"Handler exited: code={e.code!r}")
        return HandlerCall(Outcome.error(HandlerExit(e.code)), faulted=True)
    except Exception as e:
        logger.exception(f"Handler raised {type(e).__name__}: {e}")
        return HandlerCall(Outcome.error(e), faulted=True)

    if not isinstance(result, Outcome):
        logger.error(f"Handler returned {type(result).__name__}, expected Outcome")
        return HandlerCall(Outcome.error(InvalidHandlerResult(result)), faulted=True)

    return HandlerCall(result)


async def invoke_handler(
    handler: Callable,
    arg: Any,
    timeout_seconds: Optional[float] = None,
) -> HandlerCall:
    """
    Invoke a handler and normalise its result.

    Args:
        handler: One-argument handler (plain or coroutine function)
        arg: Health-check callback or batch state
        timeout_seconds: Deadline (None = wait indefinitely)

    Returns:
        HandlerCall; never raises for handler-originated failures
    """
    if timeout_seconds is None:
        return await _run_handler(handler, arg)

    task = asyncio.ensure_future(_run_handler(handler, arg))
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    _abandoned.add(task)
    task.add_done_callback(_abandoned_finished)
    logger.warning(f"Handler exceeded {timeout_seconds}s deadline; abandoning it")
    return HandlerCall(Outcome.error(HandlerTimeoutError(timeout_seconds)))


# ============================================================================
# MONITOR AND HEALTH CHECK
# ============================================================================

def build_monitor(options: Any) -> Monitor:
    """Monitor for an options model (sync or async by mode)."""
    if options.mode == OperationMode.ASYNC:
        return AsyncHealthMonitor(options.health_checkers)
    return SyncHealthMonitor(options.health_checkers)


def build_health_check(
    monitor: Monitor,
    handler: Callable,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Callable[[], Any]:
    """
    Build the callback a single handler uses to consult health.

    Coroutine handlers get a coroutine function. Plain handlers run in a
    worker thread and get a blocking function that hops onto the loop.
    Either way the result is HealthSignal.ok() or HealthSignal.halt(snapshot).
    """
    loop = loop or asyncio.get_running_loop()

    async def check() -> HealthSignal:
        snapshot = await monitor.get_state()
        if should_halt(snapshot):
            return HealthSignal.halt(snapshot)
        return HealthSignal.ok()

    if asyncio.iscoroutinefunction(handler):
        return check

    def blocking_check() -> HealthSignal:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run_coroutine_threadsafe(check(), loop).result()
        raise RuntimeError("health_check() blocks; call it from a plain function handler")

    return blocking_check


# ============================================================================
# CALLBACKS AND TIMING
# ============================================================================

async def run_callback(callback: Optional[Callable], *args: Any) -> None:
    """Invoke an optional lifecycle callback, awaiting it if needed."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def system_time() -> int:
    """Wall clock in nanoseconds, reported on start events."""
    return time.time_ns()


__all__ = [
    "HandlerTimeoutError",
    "HandlerExit",
    "InvalidHandlerResult",
    "HandlerCall",
    "invoke_handler",
    "abandoned_count",
    "build_monitor",
    "build_health_check",
    "run_callback",
    "system_time",
]
