# ============================================================================
# PROCESSORS MODULE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Operation execution
# PURPOSE: Entry point that runs single and batch operations
# CREATED: 17 OCT 2026
# ============================================================================
"""
Processors Module

    from processors import run, run_sync

    outcome = await run(options)      # inside an event loop
    outcome = run_sync(options)       # from plain synchronous code

``run`` dispatches on the options type: SingleOperationOptions goes to the
single processor, BatchOperationOptions to the batch processor.
"""

import asyncio
from typing import Union

from core.contracts import Outcome
from core.models.options import BatchOperationOptions, SingleOperationOptions
from processors import batch, single
from processors.base import (
    HandlerCall,
    HandlerExit,
    HandlerTimeoutError,
    InvalidHandlerResult,
    abandoned_count,
    invoke_handler,
)
from processors.batch import BatchOperationProcessor
from processors.single import SingleOperationProcessor

OperationOptions = Union[SingleOperationOptions, BatchOperationOptions]


async def run(options: OperationOptions) -> Outcome:
    """
    Run an operation.

    Raises:
        TypeError: If options is neither options model
    """
    if isinstance(options, SingleOperationOptions):
        return await single.process(options)
    if isinstance(options, BatchOperationOptions):
        return await batch.process(options)
    raise TypeError(f"Expected operation options, got {type(options).__name__}")


def run_sync(options: OperationOptions) -> Outcome:
    """Run an operation on a fresh event loop and block until it ends."""
    return asyncio.run(run(options))


__all__ = [
    "OperationOptions",
    "run",
    "run_sync",
    "SingleOperationProcessor",
    "BatchOperationProcessor",
    "HandlerCall",
    "HandlerExit",
    "HandlerTimeoutError",
    "InvalidHandlerResult",
    "abandoned_count",
    "invoke_handler",
]
