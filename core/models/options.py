# ============================================================================
# OPERATION OPTIONS
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core model - Validated operation configuration
# PURPOSE: Pre-flight validation of handlers, callbacks, mode and probes
# CREATED: 17 OCT 2026
# EXPORTS: ConfigurationError, SingleOperationOptions, BatchOperationOptions
# DEPENDENCIES: pydantic
# ============================================================================
"""
Operation Options

Immutable, validated configuration for the two operation shapes:

- SingleOperationOptions: one handler call that may consult health itself
- BatchOperationOptions: a state-threading loop of batch handler calls

Validation happens at construction and raises ConfigurationError carrying a
stable ``code`` (``invalid_handle``, ``invalid_mode``...). Fields are checked
in declaration order and the first failure wins, so a config with a bad
handler AND a bad mode reports ``invalid_handle``.

Callables are checked for arity, not type: a probe must accept zero
arguments, a handler exactly one positional argument, and so on.
"""

import inspect
import math
from typing import Any, Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from checkpoints.base import Checkpoint
from core.contracts import OperationMode


class ConfigurationError(Exception):
    """
    Raised when operation options fail validation.

    Not a ValueError, so pydantic re-raises it unwrapped and callers can
    match on ``code``.
    """

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code)

    def __repr__(self) -> str:
        return f"ConfigurationError({self.code!r})"


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def accepts_args(func: Any, count: int) -> bool:
    """True if func is callable with ``count`` positional arguments."""
    if not callable(func):
        return False
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Some builtins expose no signature; trust callable()
        return True
    try:
        signature.bind(*([None] * count))
    except TypeError:
        return False
    return True


def _require_callable(value: Any, count: int, code: str) -> Callable:
    if value is None or not accepts_args(value, count):
        raise ConfigurationError(code, f"{code}: expected a callable taking {count} argument(s)")
    return value


def _optional_callable(value: Any, count: int, code: str) -> Optional[Callable]:
    if value is None:
        return None
    return _require_callable(value, count, code)


def _validate_mode(value: Any) -> OperationMode:
    try:
        return OperationMode(value)
    except ValueError:
        raise ConfigurationError("invalid_mode", f"invalid_mode: {value!r} is not 'sync' or 'async'") from None


def _validate_probes(value: Any) -> Tuple[Callable, ...]:
    if value is None or isinstance(value, (str, bytes, dict)):
        raise ConfigurationError("invalid_health_checkers", "invalid_health_checkers: expected a list of probes")
    try:
        probes = tuple(value)
    except TypeError:
        raise ConfigurationError("invalid_health_checkers", "invalid_health_checkers: expected a list of probes") from None
    if not probes:
        raise ConfigurationError("invalid_health_checkers", "invalid_health_checkers: at least one probe is required")
    if not all(accepts_args(probe, 0) for probe in probes):
        raise ConfigurationError("invalid_health_checkers", "invalid_health_checkers: probes take no arguments")
    return probes


def _is_number(value: Any) -> bool:
    """Finite int or float; bools, NaN and infinities are rejected."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return math.isfinite(value)


def _validate_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    if not _is_number(value) or value <= 0:
        raise ConfigurationError("invalid_timeout", f"invalid_timeout: {value!r}")
    return float(value)


def _validate_prefix(value: Any) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(".")
    try:
        prefix = tuple(value)
    except TypeError:
        raise ConfigurationError("invalid_telemetry_prefix", f"invalid_telemetry_prefix: {value!r}") from None
    if not prefix or not all(isinstance(part, str) and part for part in prefix):
        raise ConfigurationError("invalid_telemetry_prefix", f"invalid_telemetry_prefix: {value!r}")
    return prefix


_MODEL_CONFIG = ConfigDict(
    frozen=True,
    arbitrary_types_allowed=True,
    extra="forbid",
    validate_default=True,
)


# ============================================================================
# SINGLE OPERATION
# ============================================================================

class SingleOperationOptions(BaseModel):
    """
    Configuration for a single operation.

    ``handle(health_check)`` receives a zero-argument callback returning
    HealthSignal.ok() or HealthSignal.halt(snapshot) and returns an Outcome.
    """

    model_config = _MODEL_CONFIG

    handle: Any = Field(default=None, description="handle(health_check) -> Outcome")
    on_success: Any = Field(default=None, description="on_success(value)")
    on_error: Any = Field(default=None, description="on_error(reason)")
    on_complete: Any = Field(default=None, description="on_complete(value)")
    mode: Any = Field(default=OperationMode.SYNC)
    health_checkers: Any = Field(default=None, description="Non-empty list of zero-arg probes")
    timeout_seconds: Any = Field(default=None, description="Handler deadline (None = unbounded)")
    telemetry_prefix: Any = Field(default=None, description="Event name prefix (None = no telemetry)")

    @field_validator("handle")
    @classmethod
    def _check_handle(cls, v):
        return _require_callable(v, 1, "invalid_handle")

    @field_validator("on_success")
    @classmethod
    def _check_on_success(cls, v):
        return _optional_callable(v, 1, "invalid_on_success")

    @field_validator("on_error")
    @classmethod
    def _check_on_error(cls, v):
        return _optional_callable(v, 1, "invalid_on_error")

    @field_validator("on_complete")
    @classmethod
    def _check_on_complete(cls, v):
        return _optional_callable(v, 1, "invalid_on_complete")

    @field_validator("mode")
    @classmethod
    def _check_mode(cls, v):
        return _validate_mode(v)

    @field_validator("health_checkers")
    @classmethod
    def _check_health_checkers(cls, v):
        return _validate_probes(v)

    @field_validator("timeout_seconds")
    @classmethod
    def _check_timeout(cls, v):
        return _validate_timeout(v)

    @field_validator("telemetry_prefix")
    @classmethod
    def _check_telemetry_prefix(cls, v):
        return _validate_prefix(v)


# ============================================================================
# BATCH OPERATION
# ============================================================================

class BatchOperationOptions(BaseModel):
    """
    Configuration for a batch operation.

    ``handle_batch(state)`` returns Outcome.done(), Outcome.ok(next_state)
    or Outcome.error(reason). The loop starts from ``initial_state`` unless
    ``checkpoint`` holds a saved state.

    ``batch_size`` is informational: it is reported in telemetry metadata
    and left for the handler to interpret.
    """

    model_config = _MODEL_CONFIG

    handle_batch: Any = Field(default=None, description="handle_batch(state) -> Outcome")
    on_success: Any = Field(default=None, description="on_success(next_state), after every batch")
    on_error: Any = Field(default=None, description="on_error(reason, state)")
    on_complete: Any = Field(default=None, description="on_complete(DONE | last_state)")
    mode: Any = Field(default=OperationMode.SYNC)
    health_checkers: Any = Field(default=None, description="Non-empty list of zero-arg probes")
    timeout_seconds: Any = Field(default=None, description="Per-batch deadline (None = unbounded)")
    delay_between_batches_seconds: Any = Field(default=None, description="Pause after each ok batch")
    batch_size: Any = Field(default=None, description="Informational batch size")
    telemetry_prefix: Any = Field(default=None, description="Event name prefix (None = no telemetry)")
    checkpoint: Any = Field(default=None, description="Checkpoint(adapter, name) or None")
    initial_state: Any = Field(default=None, description="State for a fresh run")

    @field_validator("handle_batch")
    @classmethod
    def _check_handle_batch(cls, v):
        return _require_callable(v, 1, "invalid_handle_batch")

    @field_validator("on_success")
    @classmethod
    def _check_on_success(cls, v):
        return _optional_callable(v, 1, "invalid_on_success")

    @field_validator("on_error")
    @classmethod
    def _check_on_error(cls, v):
        return _optional_callable(v, 2, "invalid_on_error")

    @field_validator("on_complete")
    @classmethod
    def _check_on_complete(cls, v):
        return _optional_callable(v, 1, "invalid_on_complete")

    @field_validator("mode")
    @classmethod
    def _check_mode(cls, v):
        return _validate_mode(v)

    @field_validator("health_checkers")
    @classmethod
    def _check_health_checkers(cls, v):
        return _validate_probes(v)

    @field_validator("timeout_seconds")
    @classmethod
    def _check_timeout(cls, v):
        return _validate_timeout(v)

    @field_validator("delay_between_batches_seconds")
    @classmethod
    def _check_delay(cls, v):
        if v is None:
            return None
        if not _is_number(v) or v < 0:
            raise ConfigurationError("invalid_delay", f"invalid_delay: {v!r}")
        return float(v)

    @field_validator("batch_size")
    @classmethod
    def _check_batch_size(cls, v):
        if v is None:
            return None
        if not isinstance(v, int) or isinstance(v, bool) or v < 1:
            raise ConfigurationError("invalid_batch_size", f"invalid_batch_size: {v!r}")
        return v

    @field_validator("telemetry_prefix")
    @classmethod
    def _check_telemetry_prefix(cls, v):
        return _validate_prefix(v)

    @field_validator("checkpoint")
    @classmethod
    def _check_checkpoint(cls, v):
        if v is not None and not isinstance(v, Checkpoint):
            raise ConfigurationError("invalid_checkpoint", f"invalid_checkpoint: {v!r}")
        return v


def option_values(options: BaseModel) -> dict:
    """Field values of an options model, without pydantic serialization."""
    return {name: getattr(options, name) for name in type(options).model_fields}


__all__ = [
    "ConfigurationError",
    "accepts_args",
    "SingleOperationOptions",
    "BatchOperationOptions",
    "option_values",
]
