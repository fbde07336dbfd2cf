# ============================================================================
# BATCH OPERATION PROCESSOR
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Batch operation loop
# PURPOSE: Thread state through batch handler calls, checkpoint after each
#          batch and stop when health degrades
# CREATED: 17 OCT 2026
# ============================================================================
"""
Batch Operation Processor

Loop over (state, batch_count):

1. Resume from the checkpoint if one is stored, else start from
   ``initial_state``.
2. Call ``handle_batch(state)``:
   - done       -> delete checkpoint, on_complete(DONE), Outcome.ok(DONE)
   - ok(next)   -> on_success(next), save checkpoint(next), delay, check
                   health; halt -> on_complete(next), Outcome.halt(next)
   - error/fault/timeout
                -> save checkpoint(state), on_error(reason, state),
                   Outcome.error(reason)
   - halt(value)
                -> on_complete(value), Outcome.halt(value); checkpoint
                   untouched
3. Stop the monitor, whatever happened.

The checkpoint is kept on halt and on error so that running the same
operation again resumes where it stopped. Only ``done`` removes it.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Tuple

from checkpoints.base import (
    CheckpointNotFound,
    delete_checkpoint,
    load_checkpoint,
    save_checkpoint,
)
from core.contracts import DONE, Outcome
from core.logging import log_context
from core.models.options import BatchOperationOptions
from core.observability import elapsed_ms, emit
from health import should_halt, snapshot_to_dicts
from processors.base import (
    Monitor,
    build_monitor,
    invoke_handler,
    run_callback,
    system_time,
)

logger = logging.getLogger(__name__)


class BatchOperationProcessor:
    """Executes one BatchOperationOptions."""

    def __init__(self, options: BatchOperationOptions):
        self.options = options
        self.batch_count = 0
        self.resumed = False
        self.metadata: Dict[str, Any] = {"mode": options.mode.value}

    async def run(self) -> Outcome:
        """
        Run the batch loop to a terminal Outcome.

        Returns:
            Outcome.ok(DONE), Outcome.halt(last_state) or Outcome.error(reason)

        Raises:
            CheckpointError: The checkpoint store failed (other than not-found
                on resume)
            Exception: Whatever a lifecycle callback raises
        """
        options = self.options
        prefix = options.telemetry_prefix

        with log_context(
            operation=".".join(prefix) if prefix else None,
            mode=options.mode.value,
            checkpoint=str(options.checkpoint) if options.checkpoint else None,
        ):
            state, self.resumed = await self._resume()
            self.metadata.update(resumed=self.resumed, batch_size=options.batch_size)

            start_time = time.monotonic()
            emit(prefix, ("start",), {"system_time": system_time()}, self.metadata)
            logger.info(f"Batch operation starting (resumed={self.resumed})")

            monitor = build_monitor(options)
            outcome: Optional[Outcome] = None
            try:
                await monitor.start()
                outcome = await self._loop(monitor, state)
                return outcome
            finally:
                await monitor.stop()
                status = outcome.status.value if outcome else "exception"
                duration_ms = elapsed_ms(start_time)
                emit(
                    prefix,
                    ("stop",),
                    {"duration_ms": duration_ms, "batch_count": self.batch_count},
                    {**self.metadata, "status": status},
                )
                logger.info(
                    f"Batch operation finished: status={status}, "
                    f"batches={self.batch_count}, duration={duration_ms}ms"
                )

    async def _resume(self) -> Tuple[Any, bool]:
        try:
            state = await load_checkpoint(self.options.checkpoint)
        except CheckpointNotFound:
            return self.options.initial_state, False
        logger.info(f"Resuming from checkpoint {self.options.checkpoint}")
        return state, True

    async def _loop(self, monitor: Monitor, state: Any) -> Outcome:
        options = self.options
        prefix = options.telemetry_prefix

        while True:
            self.batch_count += 1
            batch_start = time.monotonic()
            batch_metadata = {**self.metadata, "batch": self.batch_count}

            with log_context(batch=self.batch_count):
                emit(
                    prefix,
                    ("batch", "start"),
                    {"system_time": system_time()},
                    {**batch_metadata, "state": state},
                )
                call = await invoke_handler(options.handle_batch, state, options.timeout_seconds)
                outcome = call.outcome
                measurements = {"duration_ms": elapsed_ms(batch_start)}

                if outcome.is_done:
                    emit(prefix, ("batch", "done"), measurements, batch_metadata)
                    await delete_checkpoint(options.checkpoint)
                    await run_callback(options.on_complete, DONE)
                    logger.info(f"Batch operation done after {self.batch_count} batches")
                    return Outcome.ok(DONE)

                if outcome.is_ok:
                    next_state = outcome.value
                    emit(
                        prefix,
                        ("batch", "success"),
                        measurements,
                        {**batch_metadata, "state": next_state},
                    )
                    await run_callback(options.on_success, next_state)
                    await save_checkpoint(options.checkpoint, next_state)

                    if options.delay_between_batches_seconds:
                        await asyncio.sleep(options.delay_between_batches_seconds)

                    snapshot = await monitor.get_state()
                    if should_halt(snapshot):
                        logger.warning(f"Health check halted batch operation at batch {self.batch_count}")
                        emit(
                            prefix,
                            ("health_check", "halt"),
                            {"batch_count": self.batch_count},
                            {**batch_metadata, "state": next_state, "signals": snapshot_to_dicts(snapshot)},
                        )
                        await run_callback(options.on_complete, next_state)
                        return Outcome.halt(next_state)

                    state = next_state
                    continue

                if outcome.is_halt:
                    logger.info(f"Batch handler requested halt at batch {self.batch_count}")
                    await run_callback(options.on_complete, outcome.value)
                    return Outcome.halt(outcome.value)

                reason = outcome.value
                logger.error(f"Batch {self.batch_count} failed: {reason!r}")
                emit(
                    prefix,
                    ("batch", "exception") if call.faulted else ("batch", "error"),
                    measurements,
                    {**batch_metadata, "state": state, "reason": reason},
                )
                await save_checkpoint(options.checkpoint, state)
                await run_callback(options.on_error, reason, state)
                return Outcome.error(reason)


async def process(options: BatchOperationOptions) -> Outcome:
    """Run a batch operation to its terminal Outcome."""
    return await BatchOperationProcessor(options).run()


__all__ = ["BatchOperationProcessor", "process"]
