# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Model exports
# PURPOSE: Central export point for the operation option models
# CREATED: 17 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models describing what an operation runs and how it is monitored.
"""

from core.models.options import (
    ConfigurationError,
    SingleOperationOptions,
    BatchOperationOptions,
    accepts_args,
    option_values,
)

__all__ = [
    "ConfigurationError",
    "SingleOperationOptions",
    "BatchOperationOptions",
    "accepts_args",
    "option_values",
]
