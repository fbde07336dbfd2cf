# ============================================================================
# SINGLE OPERATION PROCESSOR
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Single operation execution
# PURPOSE: Run one handler that consults health on its own schedule
# CREATED: 17 OCT 2026
# ============================================================================
"""
Single Operation Processor

Runs ``options.handle(health_check)`` once. The handler decides when to ask
for health (zero or many times) and what to do on a halt signal:

    def handle(health_check):
        for page in pages():
            if health_check().is_halt:
                return Outcome.halt(page.cursor)
            migrate(page)
        return Outcome.done()

Result mapping:
    done        -> on_success(DONE), on_complete(DONE)  -> Outcome.ok(DONE)
    ok(state)   -> on_success(state), on_complete(state) -> Outcome.ok(state)
    halt(state) -> on_complete(state)                   -> Outcome.halt(state)
    error/fault -> on_error(reason)                     -> Outcome.error(reason)
"""

import logging
import time

from core.contracts import DONE, Outcome
from core.logging import log_context
from core.models.options import SingleOperationOptions
from core.observability import elapsed_ms, emit
from processors.base import (
    build_health_check,
    build_monitor,
    invoke_handler,
    run_callback,
    system_time,
)

logger = logging.getLogger(__name__)


class SingleOperationProcessor:
    """Executes one SingleOperationOptions."""

    def __init__(self, options: SingleOperationOptions):
        self.options = options
        self.metadata = {"mode": options.mode.value}

    async def run(self) -> Outcome:
        """
        Run the operation.

        Returns:
            Outcome.ok(value), Outcome.halt(value) or Outcome.error(reason)

        Raises:
            Exception: Whatever a lifecycle callback raises
        """
        options = self.options
        prefix = options.telemetry_prefix
        start_time = time.monotonic()

        with log_context(
            operation=".".join(prefix) if prefix else None,
            mode=options.mode.value,
        ):
            emit(prefix, ("start",), {"system_time": system_time()}, self.metadata)
            logger.info("Single operation starting")

            monitor = build_monitor(options)
            try:
                await monitor.start()
                health_check = build_health_check(monitor, options.handle)
                call = await invoke_handler(options.handle, health_check, options.timeout_seconds)
            finally:
                await monitor.stop()

            outcome = call.outcome
            measurements = {"duration_ms": elapsed_ms(start_time)}

            if outcome.is_done:
                return await self._succeed(DONE, measurements)

            if outcome.is_ok:
                return await self._succeed(outcome.value, measurements)

            if outcome.is_halt:
                logger.info(f"Single operation halted after {measurements['duration_ms']}ms")
                await run_callback(options.on_complete, outcome.value)
                emit(prefix, ("halt",), measurements, {**self.metadata, "state": outcome.value})
                return Outcome.halt(outcome.value)

            reason = outcome.value
            logger.error(f"Single operation failed: {reason!r}")
            await run_callback(options.on_error, reason)
            emit(
                prefix,
                ("exception",) if call.faulted else ("error",),
                measurements,
                {**self.metadata, "reason": reason},
            )
            return Outcome.error(reason)

    async def _succeed(self, value, measurements) -> Outcome:
        options = self.options
        logger.info(f"Single operation succeeded in {measurements['duration_ms']}ms")
        await run_callback(options.on_success, value)
        await run_callback(options.on_complete, value)
        emit(
            options.telemetry_prefix,
            ("success",),
            measurements,
            {**self.metadata, "state": value},
        )
        return Outcome.ok(value)


async def process(options: SingleOperationOptions) -> Outcome:
    """Run a single operation to its terminal Outcome."""
    return await SingleOperationProcessor(options).run()


__all__ = ["SingleOperationProcessor", "process"]
