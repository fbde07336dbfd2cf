# ============================================================================
# HALT EVALUATOR
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Infrastructure - Halt decision
# PURPOSE: Reduce a monitor snapshot to a halt/continue decision
# CREATED: 17 OCT 2026
# ============================================================================
"""
Halt Evaluator

OR semantics: a single halt signal halts the whole set. No weighting.
"""

from typing import Iterable

from health.core import HealthSignal


def should_halt(signals: Iterable[HealthSignal]) -> bool:
    """
    Decide whether a set of signals calls for a halt.

    Returns:
        True if any signal is a halt; False for all-ok or empty input
    """
    return any(
        isinstance(signal, HealthSignal) and signal.is_halt
        for signal in signals
    )


__all__ = ["should_halt"]
