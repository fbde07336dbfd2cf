# ============================================================================
# HEALTH MONITOR TESTS
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Tests - Sync and async monitors, probe fan-out
# PURPOSE: Verify ordering, fail-closed gathers and the background poller
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Monitor Tests

Covers:
1. Probe fan-out (ordering, concurrency, sync and async probes)
2. Fail-closed gathers (timeout, raising probe, bad return value)
3. SyncHealthMonitor
4. AsyncHealthMonitor lifecycle and cached reads

Run with:
    pytest tests/test_health_monitors.py -v
"""

import asyncio
import threading
import time

import pytest

from health import (
    AsyncHealthMonitor,
    HealthSignal,
    InvalidProbeResult,
    MonitorStatus,
    MonitorStoppedError,
    ProbeTimeoutError,
    SyncHealthMonitor,
    gather_signals,
)
from health import sync_monitor


# ============================================================================
# HELPERS
# ============================================================================

def ok_probe():
    return HealthSignal.ok()


def halt_probe():
    return HealthSignal.halt("degraded")


def counting_probe(halt_from_call=None):
    """Probe that halts from the given call number onward."""
    calls = []

    def probe():
        calls.append(1)
        if halt_from_call is not None and len(calls) >= halt_from_call:
            return HealthSignal.halt("degraded")
        return HealthSignal.ok()

    probe.calls = calls
    return probe


# ============================================================================
# GATHER
# ============================================================================

class TestGatherSignals:
    """Fan-out with fail-closed aggregation."""

    def test_empty_probe_set(self):
        assert asyncio.run(gather_signals([], 1.0)) == []

    def test_results_in_probe_order(self):
        def named(reason):
            return lambda: HealthSignal.halt(reason)

        probes = [named("a"), ok_probe, named("c"), ok_probe]
        snapshot = asyncio.run(gather_signals(probes, 1.0))

        assert [s.reason for s in snapshot] == ["a", None, "c", None]
        assert [s.is_halt for s in snapshot] == [True, False, True, False]

    def test_mixed_sync_and_async_probes(self):
        async def async_ok():
            await asyncio.sleep(0)
            return HealthSignal.ok()

        async def async_halt():
            return HealthSignal.halt("async")

        snapshot = asyncio.run(gather_signals([ok_probe, async_ok, async_halt], 1.0))
        assert snapshot == [HealthSignal.ok(), HealthSignal.ok(), HealthSignal.halt("async")]

    def test_plain_probe_returning_coroutine_is_awaited(self):
        async def check():
            return HealthSignal.halt("lazy")

        snapshot = asyncio.run(gather_signals([lambda: check()], 1.0))
        assert snapshot == [HealthSignal.halt("lazy")]

    def test_sync_probes_run_concurrently(self):
        """Two probes meeting at a barrier only pass if they overlap."""
        barrier = threading.Barrier(2, timeout=2)

        def meet():
            barrier.wait()
            return HealthSignal.ok()

        snapshot = asyncio.run(gather_signals([meet, meet], 5.0))
        assert snapshot == [HealthSignal.ok(), HealthSignal.ok()]

    def test_async_probes_run_concurrently(self):
        async def slow():
            await asyncio.sleep(0.2)
            return HealthSignal.ok()

        start = time.monotonic()
        snapshot = asyncio.run(gather_signals([slow, slow, slow], 5.0))
        elapsed = time.monotonic() - start

        assert len(snapshot) == 3
        assert elapsed < 0.5

    def test_timeout_fails_closed(self):
        async def hangs():
            await asyncio.sleep(10)
            return HealthSignal.ok()

        snapshot = asyncio.run(gather_signals([ok_probe, hangs, ok_probe], 0.05))

        assert len(snapshot) == 3
        assert all(s.is_halt for s in snapshot)
        assert all(isinstance(s.reason, ProbeTimeoutError) for s in snapshot)

    def test_raising_probe_fails_closed(self):
        error = RuntimeError("connection refused")

        def broken():
            raise error

        snapshot = asyncio.run(gather_signals([ok_probe, broken, ok_probe], 1.0))

        assert len(snapshot) == 3
        assert all(s.is_halt for s in snapshot)
        assert all(s.reason is error for s in snapshot)

    def test_non_signal_result_fails_closed(self):
        snapshot = asyncio.run(gather_signals([ok_probe, lambda: True], 1.0))

        assert all(s.is_halt for s in snapshot)
        assert isinstance(snapshot[0].reason, InvalidProbeResult)
        assert snapshot[0].reason.value is True


# ============================================================================
# SYNC MONITOR
# ============================================================================

class TestSyncHealthMonitor:
    """On-demand probing."""

    def test_m_of_n_halts(self):
        probes = [ok_probe, halt_probe, ok_probe, halt_probe, halt_probe]
        snapshot = asyncio.run(SyncHealthMonitor(probes).get_state())

        assert len(snapshot) == 5
        assert sum(1 for s in snapshot if s.is_halt) == 3
        assert [s.is_halt for s in snapshot] == [False, True, False, True, True]

    def test_probes_run_on_every_call(self):
        probe = counting_probe()
        monitor = SyncHealthMonitor([probe])

        async def scenario():
            await monitor.start()
            for _ in range(3):
                await monitor.get_state()
            await monitor.stop()

        asyncio.run(scenario())
        assert len(probe.calls) == 3

    def test_probe_set_is_frozen(self):
        probes = [ok_probe]
        monitor = SyncHealthMonitor(probes)
        probes.append(halt_probe)

        assert monitor.probes == (ok_probe,)
        assert asyncio.run(monitor.get_state()) == [HealthSignal.ok()]

    def test_custom_timeout(self):
        async def hangs():
            await asyncio.sleep(10)

        monitor = SyncHealthMonitor([hangs], timeout_seconds=0.05)
        snapshot = asyncio.run(monitor.get_state())
        assert snapshot[0].is_halt

    def test_default_timeout_from_config(self):
        assert SyncHealthMonitor([ok_probe]).timeout_seconds == 15.0

    def test_module_level_get_state(self):
        assert asyncio.run(sync_monitor.get_state([])) == []
        assert asyncio.run(sync_monitor.get_state([halt_probe])) == [HealthSignal.halt("degraded")]


# ============================================================================
# ASYNC MONITOR
# ============================================================================

class TestAsyncHealthMonitor:
    """Background poller serving a cached snapshot."""

    def test_start_waits_for_first_poll(self):
        async def scenario():
            monitor = AsyncHealthMonitor([ok_probe, halt_probe], poll_interval_seconds=60)
            assert monitor.status == MonitorStatus.STARTING
            await monitor.start()
            try:
                assert monitor.status == MonitorStatus.READY
                assert monitor.poll_count == 1
                return await monitor.get_state()
            finally:
                await monitor.stop()

        snapshot = asyncio.run(scenario())
        assert snapshot == [HealthSignal.ok(), HealthSignal.halt("degraded")]

    def test_snapshot_length_matches_probe_set(self):
        async def scenario():
            async with AsyncHealthMonitor([ok_probe] * 4, poll_interval_seconds=0.01) as monitor:
                lengths = []
                for _ in range(5):
                    lengths.append(len(await monitor.get_state()))
                    await asyncio.sleep(0.01)
                return lengths

        assert asyncio.run(scenario()) == [4] * 5

    def test_reads_do_not_wait_for_probes(self):
        """A poll stuck in a slow probe does not delay get_state()."""
        calls = []

        async def slow_after_first():
            calls.append(1)
            if len(calls) > 1:
                await asyncio.sleep(5)
            return HealthSignal.ok()

        async def scenario():
            monitor = AsyncHealthMonitor(
                [slow_after_first],
                poll_interval_seconds=0.01,
                timeout_seconds=10,
            )
            await monitor.start()
            try:
                await asyncio.sleep(0.05)
                assert monitor.status == MonitorStatus.POLLING
                start = time.monotonic()
                snapshot = await asyncio.wait_for(monitor.get_state(), timeout=1)
                return snapshot, time.monotonic() - start
            finally:
                await monitor.stop()

        snapshot, elapsed = asyncio.run(scenario())
        assert snapshot == [HealthSignal.ok()]
        assert elapsed < 0.5

    def test_background_poll_refreshes_cache(self):
        probe = counting_probe(halt_from_call=2)

        async def scenario():
            async with AsyncHealthMonitor([probe], poll_interval_seconds=0.02) as monitor:
                first = await monitor.get_state()
                await asyncio.sleep(0.2)
                later = await monitor.get_state()
                return first, later

        first, later = asyncio.run(scenario())
        assert first == [HealthSignal.ok()]
        assert later == [HealthSignal.halt("degraded")]
        assert len(probe.calls) >= 2

    def test_poll_fails_closed(self):
        def broken():
            raise ConnectionError("db down")

        async def scenario():
            async with AsyncHealthMonitor([ok_probe, broken], poll_interval_seconds=60) as monitor:
                return await monitor.get_state()

        snapshot = asyncio.run(scenario())
        assert all(s.is_halt for s in snapshot)
        assert isinstance(snapshot[0].reason, ConnectionError)

    def test_get_state_after_stop_raises(self):
        async def scenario():
            monitor = AsyncHealthMonitor([ok_probe], poll_interval_seconds=60)
            await monitor.start()
            await monitor.stop()
            assert monitor.status == MonitorStatus.STOPPED
            await monitor.get_state()

        with pytest.raises(MonitorStoppedError):
            asyncio.run(scenario())

    def test_get_state_before_start_raises(self):
        monitor = AsyncHealthMonitor([ok_probe])
        with pytest.raises(MonitorStoppedError):
            asyncio.run(monitor.get_state())

    def test_stop_is_idempotent(self):
        async def scenario():
            monitor = AsyncHealthMonitor([ok_probe], poll_interval_seconds=60)
            await monitor.start()
            await monitor.stop()
            await monitor.stop()
            return monitor.status

        assert asyncio.run(scenario()) == MonitorStatus.STOPPED

    def test_stop_halts_polling(self):
        probe = counting_probe()

        async def scenario():
            monitor = AsyncHealthMonitor([probe], poll_interval_seconds=0.01)
            await monitor.start()
            await asyncio.sleep(0.05)
            await monitor.stop()
            calls_at_stop = len(probe.calls)
            await asyncio.sleep(0.1)
            return calls_at_stop, len(probe.calls)

        at_stop, after = asyncio.run(scenario())
        # A probe already handed to a worker thread may still land
        assert after <= at_stop + 1

    def test_cannot_start_twice(self):
        async def scenario():
            monitor = AsyncHealthMonitor([ok_probe], poll_interval_seconds=60)
            await monitor.start()
            try:
                await monitor.start()
            finally:
                await monitor.stop()

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())

    def test_defaults_from_config(self):
        monitor = AsyncHealthMonitor([ok_probe])
        assert monitor.poll_interval_seconds == 10.0
        assert monitor.timeout_seconds == 15.0
