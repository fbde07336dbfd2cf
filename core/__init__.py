# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core module initialization
# PURPOSE: Export contracts, option models and telemetry helpers
# CREATED: 17 OCT 2026
# ============================================================================

from core.contracts import DONE, OperationMode, Outcome, OutcomeStatus
from core.models import (
    ConfigurationError,
    SingleOperationOptions,
    BatchOperationOptions,
)

__all__ = [
    # Contracts
    "DONE",
    "OperationMode",
    "Outcome",
    "OutcomeStatus",
    # Models
    "ConfigurationError",
    "SingleOperationOptions",
    "BatchOperationOptions",
]
