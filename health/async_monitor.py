# ============================================================================
# ASYNC HEALTH MONITOR
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Background health monitoring
# PURPOSE: Poll probes in the background and serve a cached snapshot
# CREATED: 17 OCT 2026
# ============================================================================
"""
Async Health Monitor

A background worker that polls the probe set on a timer and keeps the last
snapshot. Readers never wait on probes: ``get_state()`` is a request sent to
the worker's inbox, answered from the cached snapshot.

Lifecycle:
    STARTING -> POLLING -> READY -> POLLING -> READY -> ... -> STOPPED

Only the worker task touches the snapshot. Polls run as a child task that
posts its result back into the inbox, so requests are answered while a poll
is in flight. ``start()`` returns after the first poll has landed.

Usage:
    monitor = AsyncHealthMonitor(probes, poll_interval_seconds=10)
    await monitor.start()
    try:
        snapshot = await monitor.get_state()
    finally:
        await monitor.stop()

    # or
    async with AsyncHealthMonitor(probes) as monitor:
        snapshot = await monitor.get_state()
"""

import asyncio
import logging
from enum import Enum
from typing import Optional, Sequence, Tuple

from core.config import get_defaults
from health.core import HealthSignal, MonitorSnapshot, Probe
from health.executor import gather_signals

logger = logging.getLogger(__name__)


class MonitorStatus(str, Enum):
    """Worker lifecycle states."""
    STARTING = "starting"
    POLLING = "polling"
    READY = "ready"
    STOPPED = "stopped"


class MonitorStoppedError(RuntimeError):
    """Raised when reading from a monitor that is not running."""
    pass


# Inbox message kinds
_GET = "get"
_POLL = "poll"
_POLL_RESULT = "poll_result"
_STOP = "stop"


class AsyncHealthMonitor:
    """
    Background poller owning a cached MonitorSnapshot.

    The owner must call stop(); a monitor left running keeps its timer and
    worker task alive until the event loop closes.
    """

    def __init__(
        self,
        probes: Sequence[Probe],
        poll_interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ):
        defaults = get_defaults().monitor
        self.probes: Tuple[Probe, ...] = tuple(probes)
        self.poll_interval_seconds = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else defaults.poll_interval_seconds
        )
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else defaults.probe_timeout_seconds
        )

        self._status = MonitorStatus.STARTING
        self._snapshot: MonitorSnapshot = [HealthSignal.ok() for _ in self.probes]
        self._poll_count = 0

        self._inbox: Optional[asyncio.Queue] = None
        self._ready: Optional[asyncio.Event] = None
        self._worker: Optional[asyncio.Task] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def status(self) -> MonitorStatus:
        return self._status

    @property
    def poll_count(self) -> int:
        """Number of completed polls."""
        return self._poll_count

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """
        Start the worker and wait for the first poll to complete.

        Raises:
            RuntimeError: If the monitor was already started
        """
        if self._worker is not None:
            raise RuntimeError("AsyncHealthMonitor already started")

        self._inbox = asyncio.Queue()
        self._ready = asyncio.Event()
        self._worker = asyncio.create_task(self._run(), name="async-health-monitor")
        self._inbox.put_nowait((_POLL, None))

        logger.info(
            f"Async health monitor starting: {len(self.probes)} probes, "
            f"interval={self.poll_interval_seconds}s, timeout={self.timeout_seconds}s"
        )
        await self._ready.wait()

    async def stop(self) -> None:
        """Stop the worker. Safe to call more than once."""
        if not self.is_running:
            self._status = MonitorStatus.STOPPED
            return

        self._inbox.put_nowait((_STOP, None))
        await self._worker
        logger.info(f"Async health monitor stopped after {self._poll_count} polls")

    async def __aenter__(self) -> "AsyncHealthMonitor":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_state(self) -> MonitorSnapshot:
        """
        Return the cached snapshot without waiting for a fresh poll.

        Raises:
            MonitorStoppedError: If the monitor is not running
        """
        if not self.is_running:
            raise MonitorStoppedError(f"Health monitor is {self._status.value}")

        reply = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait((_GET, reply))
        return await reply

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            while True:
                kind, payload = await self._inbox.get()

                if kind == _GET:
                    if not payload.done():
                        payload.set_result(list(self._snapshot))

                elif kind == _POLL:
                    self._timer = None
                    if self._poll_task is None:
                        self._status = MonitorStatus.POLLING
                        self._poll_task = asyncio.create_task(self._poll())

                elif kind == _POLL_RESULT:
                    self._poll_task = None
                    self._snapshot = payload
                    self._poll_count += 1
                    self._status = MonitorStatus.READY
                    self._ready.set()
                    self._timer = loop.call_later(
                        self.poll_interval_seconds,
                        self._inbox.put_nowait,
                        (_POLL, None),
                    )

                elif kind == _STOP:
                    break
        finally:
            self._shutdown()

    async def _poll(self) -> None:
        snapshot = await gather_signals(self.probes, self.timeout_seconds)
        halted = sum(1 for signal in snapshot if signal.is_halt)
        if halted:
            logger.warning(f"Health poll: {halted}/{len(snapshot)} probes report halt")
        else:
            logger.debug(f"Health poll: {len(snapshot)} probes ok")
        self._inbox.put_nowait((_POLL_RESULT, snapshot))

    def _shutdown(self) -> None:
        self._status = MonitorStatus.STOPPED

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

        # Fail readers still queued behind the stop request
        while not self._inbox.empty():
            kind, payload = self._inbox.get_nowait()
            if kind == _GET and not payload.done():
                payload.set_exception(MonitorStoppedError("Health monitor stopped"))

        self._ready.set()

    def __repr__(self) -> str:
        return (
            f"AsyncHealthMonitor(probes={len(self.probes)}, "
            f"status={self._status.value}, polls={self._poll_count})"
        )


__all__ = [
    "MonitorStatus",
    "MonitorStoppedError",
    "AsyncHealthMonitor",
]
